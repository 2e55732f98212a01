import logging
from typing import List
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from pydantic import ValidationError

from comuline.config.config_main import sync_config
from .payloads import (
    StationPayload, SchedulePayload, StationListResponse, ScheduleListResponse
)

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

# Mirrors the headers of a browser request from commuterline.id, which is the
# only origin the partner API answers reliably.
COMMON_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/143.0.0.0 Safari/537.36 Edg/143.0.0.0",
    "Accept": "application/json, text/javascript, */*; q=0.01",
    "Accept-Language": "en-US,en;q=0.9,id;q=0.8,ko;q=0.7",
    "Connection": "keep-alive",
    "Origin": "https://commuterline.id",
    "Referer": "https://commuterline.id/",
    "Sec-Ch-Ua": "\"Microsoft Edge\";v=\"143\", \"Chromium\";v=\"143\", \"Not A(Brand\";v=\"24\"",
    "Sec-Ch-Ua-Mobile": "?0",
    "Sec-Ch-Ua-Platform": "\"Windows\"",
    "Sec-Fetch-Dest": "empty",
    "Sec-Fetch-Mode": "cors",
    "Sec-Fetch-Site": "cross-site",
}

PREFLIGHT_HEADERS = {
    "Access-Control-Request-Method": "GET",
    "Access-Control-Request-Headers": "authorization,content-type",
}


class KrlClientError(Exception):
    """Base class for everything that can go wrong talking to the KRL API."""


class TransportError(KrlClientError):
    """DNS, connect, proxy or timeout failure."""


class UpstreamStatusError(KrlClientError):
    """The API answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"status {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class DecodeError(KrlClientError):
    """The response body was not the JSON shape we expect."""


class KrlClient:
    def __init__(self, config, session: requests.Session = None,
                 pool_maxsize: int = sync_config.max_workers):
        self.base_url = config.base_url.rstrip("/")
        self.token = config.token
        self.timeout = (config.connect_timeout, config.request_timeout)
        self.session = session if session is not None else requests.Session()

        # One kept-alive connection per schedule fan-out worker
        adapter = HTTPAdapter(pool_connections=1, pool_maxsize=pool_maxsize)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

        proxy = self._parse_proxy(config.socks5_proxy)
        if proxy:
            self.session.proxies.update({"http": proxy, "https": proxy})
            logger.info(f"Using SOCKS5 proxy {proxy}")

        if self.token:
            logger.info(f"KAI token configured (length {len(self.token)})")
        else:
            logger.warning("KAI token is missing or empty")

    def get_stations(self) -> List[StationPayload]:
        """
        Get the full station list.

        Returns:
            List of StationPayload records, including non-operational groupings

        Raises:
            KrlClientError: on transport, status or decode failure
        """
        body = self.fetch(f"{self.base_url}/krl-station")
        return self._decode(body, StationListResponse).data

    def get_schedules(self, station_id: str, time_from: str = "00:00",
                      time_to: str = "23:00") -> List[SchedulePayload]:
        """
        Get today's departures from a station.

        Args:
            station_id: Upstream short code (e.g. 'BOO')
            time_from: Start of the window, HH:MM
            time_to: End of the window, HH:MM

        Returns:
            List of SchedulePayload records

        Raises:
            KrlClientError: on transport, status or decode failure
        """
        url = self._build_url("schedules", {
            "stationid": station_id,
            "timefrom": time_from,
            "timeto": time_to,
        })
        body = self.fetch_with_preflight(url)
        return self._decode(body, ScheduleListResponse).data

    def fetch(self, url: str) -> bytes:
        """GET a URL with browser headers and auth; return the raw body."""
        try:
            response = self.session.get(url, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"GET {url} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise UpstreamStatusError(response.status_code, response.text)

        logger.debug(f"GET {url} -> {response.status_code} ({len(response.content)} bytes)")
        return response.content

    def fetch_with_preflight(self, url: str) -> bytes:
        """
        Send the CORS preflight the browser would send, then GET.

        The preflight outcome is advisory: failures are logged and the GET is
        attempted regardless.
        """
        headers = self._headers()
        headers.update(PREFLIGHT_HEADERS)

        try:
            response = self.session.options(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Preflight OPTIONS request failed: {e}")
        else:
            if not 200 <= response.status_code < 300:
                logger.warning(f"Preflight OPTIONS returned status {response.status_code}")
            response.close()

        return self.fetch(url)

    def _headers(self) -> dict:
        headers = dict(COMMON_HEADERS)
        if self.token:
            token = self.token
            if not token.startswith(BEARER_PREFIX):
                token = BEARER_PREFIX + token
            headers["Authorization"] = token
        return headers

    def _build_url(self, endpoint: str, params: dict = None) -> str:
        url = f"{self.base_url}/{endpoint}"
        if not params:
            return url

        query_string = "&".join(f"{key}={value}" for key, value in params.items())
        return f"{url}?{query_string}"

    @staticmethod
    def _decode(body: bytes, model):
        try:
            return model.model_validate_json(body)
        except (ValidationError, ValueError) as e:
            raise DecodeError(f"Unexpected {model.__name__} payload: {e}") from e

    @staticmethod
    def _parse_proxy(proxy_url: str):
        if not proxy_url:
            return None

        parsed = urlparse(proxy_url)
        if not parsed.scheme or not parsed.netloc:
            logger.error(f"Invalid SOCKS5 proxy URL '{proxy_url}', ignoring it")
            return None
        return proxy_url

