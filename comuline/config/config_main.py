from dotenv import load_dotenv
import os

load_dotenv()

class DBConfig():
    path: str = os.getenv("DB_PATH", "comuline.db")
    url: str = os.getenv("DATABASE_URL", "")

    @property
    def connection_string(self) -> str:
        if self.url:
            return self.url
        return f"sqlite:///{self.path}"

db_config = DBConfig()

class KrlConfig():
    base_url: str = os.getenv("KRL_ENDPOINT_BASE_URL", "https://api-partner.krl.co.id/krl-webs/v1")
    token: str = os.getenv("KAI_TOKEN", "")
    socks5_proxy: str = os.getenv("SOCKS5_PROXY", "")
    connect_timeout: float = float(os.getenv("KRL_CONNECT_TIMEOUT", "60"))
    request_timeout: float = float(os.getenv("KRL_REQUEST_TIMEOUT", "120"))

krl_config = KrlConfig()

class SyncConfig():
    """Configuration for the synchronization pipeline and its daily trigger."""
    max_workers: int = int(os.getenv("SYNC_MAX_WORKERS", "50"))
    progress_every: int = int(os.getenv("SYNC_PROGRESS_EVERY", "5"))
    daily_hour: int = int(os.getenv("SYNC_DAILY_HOUR", "5"))
    daily_minute: int = int(os.getenv("SYNC_DAILY_MINUTE", "0"))
    utc_offset_hours: int = int(os.getenv("SYNC_UTC_OFFSET_HOURS", "7"))

    schedule_time_from: str = "00:00"
    schedule_time_to: str = "23:00"

    # Upstream groupings that are not real stations
    excluded_station_prefix: str = "WIL"

sync_config = SyncConfig()

class LoggingConfig():
    level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    format: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logging_config = LoggingConfig()
