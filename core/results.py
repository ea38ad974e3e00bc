"""
core/results.py -- The PlatformResult envelope and its result codes.

Every JSON body the service writes, success or failure, is a PlatformResult:

    {"code": 1, "message": "Success.", "data": ...}

Clients branch on `code`, never on `message`. Codes are stable; messages may
be reworded.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel


class ResultCode(Enum):
    """Stable (code, message) pairs returned in PlatformResult."""

    SUCCESS = (1, "Success.")

    # 1xxxx -- request parameters
    PARAM_IS_INVALID = (10001, "Invalid request parameters.")

    # 2xxxx -- authentication
    USER_NOT_LOGGED_IN = (20001, "Not logged in.")
    USER_LOGIN_ERROR = (20002, "Account does not exist or password is incorrect.")
    USER_ACCOUNT_FORBIDDEN = (20003, "Account has been disabled.")
    LOGIN_FAILED = (20006, "Login failed.")

    # 4xxxx -- server
    SYSTEM_INNER_ERROR = (40001, "An unexpected error occurred.")

    # 5xxxx -- data
    RESULT_DATA_NONE = (50001, "Data not found.")
    DATA_ALREADY_EXISTED = (50003, "Data already exists.")

    # 6xxxx -- interface
    INTERFACE_EXCEED_LOAD = (60006, "Too many requests.")

    # 7xxxx -- authorization
    PERMISSION_NO_ACCESS = (70001, "No access permission.")

    @property
    def code(self) -> int:
        return self.value[0]

    @property
    def message(self) -> str:
        return self.value[1]


class PlatformResult(BaseModel):
    """Response envelope shared by every endpoint."""

    code: int
    message: str
    data: Any = None

    @classmethod
    def success(cls, data: Any = None) -> "PlatformResult":
        return cls(code=ResultCode.SUCCESS.code, message=ResultCode.SUCCESS.message, data=data)

    @classmethod
    def failure(cls, result_code: ResultCode, data: Any = None) -> "PlatformResult":
        return cls(code=result_code.code, message=result_code.message, data=data)
