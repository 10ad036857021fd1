"""
Runtime settings, filled in by the CLI from options or environment.
"""

from typing import Literal

from pydantic import BaseModel, Field

from thingsdb_firebase.transport.stdio import DEFAULT_READ_SIZE

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseModel):
    name: str = "firebase"
    log_level: LogLevel = "INFO"
    read_size: int = Field(default=DEFAULT_READ_SIZE, gt=0)
