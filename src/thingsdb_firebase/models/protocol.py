"""
Module protocol models — package types and error codes as defined by ThingsDB.
"""

from enum import IntEnum

from pydantic import BaseModel, Field


class Proto(IntEnum):
    MODULE_CONF = 64
    MODULE_CONF_OK = 65
    MODULE_CONF_ERR = 66
    MODULE_REQ = 80
    MODULE_RES = 81
    MODULE_ERR = 82


class Ex(IntEnum):
    CANCELLED = -64
    OPERATION = -63
    NUM_ARGUMENTS = -62
    TYPE_ERROR = -61
    VALUE_ERROR = -60
    OVERFLOW = -59
    ZERO_DIV = -58
    MAX_QUOTA = -57
    AUTH_ERROR = -56
    FORBIDDEN = -55
    LOOKUP_ERROR = -54
    BAD_DATA = -53
    SYNTAX_ERROR = -52
    NODE_ERROR = -51
    ASSERT_ERROR = -50
    RESULT_TOO_LARGE = -6
    REQUEST_TIMEOUT = -5
    REQUEST_CANCEL = -4
    WRITE_UV = -3
    MEMORY = -2
    INTERNAL = -1


class Package(BaseModel):
    """One framed package: correlation id, type tag and msgpack body."""
    pid: int = Field(ge=0, le=0xFFFF)
    tp: int = Field(ge=0, le=0xFF)
    data: bytes = b""
