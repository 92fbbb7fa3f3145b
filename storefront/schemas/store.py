"""Record store result schemas"""

from pydantic import BaseModel
from typing import Any, Optional
import enum


class StoreStatus(str, enum.Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    UNCONFIGURED = "unconfigured"
    ERROR = "error"


class StoreResult(BaseModel):
    """Result of a record store call; failures are values, not exceptions"""
    status: StoreStatus
    record: Optional[Any] = None
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == StoreStatus.OK

    @property
    def not_found(self) -> bool:
        return self.status == StoreStatus.NOT_FOUND

    @property
    def unconfigured(self) -> bool:
        return self.status == StoreStatus.UNCONFIGURED
