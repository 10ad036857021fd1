"""
Module error types. Every error carries the ThingsDB error code it is
reported with.
"""

from typing import Any, Optional

from thingsdb_firebase.models.protocol import Ex


class ModuleError(Exception):
    def __init__(self, code: Ex, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class BadDataError(ModuleError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(Ex.BAD_DATA, message, details)


class ProviderError(BadDataError):
    """The Firebase messaging call itself failed."""


class ConfigError(ModuleError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(Ex.OPERATION, message, details)


class ConfigDecodeError(ConfigError):
    pass


class EmptyConfigError(ConfigError):
    def __init__(self, message: str = "Firebase credentials must not be empty"):
        super().__init__(message)


class ClientInitError(ConfigError):
    pass


class NotConfiguredError(ConfigError):
    def __init__(self, message: str = "Firebase module is not configured"):
        super().__init__(message)


class TransportError(ModuleError):
    def __init__(self, message: str):
        super().__init__(Ex.INTERNAL, message)
