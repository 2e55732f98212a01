"""
Typed shapes of the KRL partner API responses.

Both endpoints wrap their records as ``{"data": [...]}``. A JSON null in any
field reads as that field's zero value ("" or 0); a value of the wrong type
(a string where a number belongs) rejects the whole response.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator


class KrlPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", strict=True)

    @field_validator("*", mode="before")
    @classmethod
    def _null_as_zero_value(cls, value, info: ValidationInfo):
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value


class StationPayload(KrlPayload):
    sta_id: str = ""
    sta_name: str = ""
    group_wil: int = 0
    fg_enable: int = 0


class SchedulePayload(KrlPayload):
    train_id: str = ""
    ka_name: str = ""
    route_name: str = ""
    dest: str = ""
    time_est: str = ""
    color: str = ""
    dest_time: str = ""


class StationListResponse(KrlPayload):
    data: List[StationPayload] = []


class ScheduleListResponse(KrlPayload):
    data: List[SchedulePayload] = []
