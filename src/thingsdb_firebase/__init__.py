"""
thingsdb-firebase — Firebase Cloud Messaging module for ThingsDB.

Reads module packages from stdin, sends push notifications through the
Firebase Admin SDK and writes results back to stdout.
"""

__version__ = "0.1.0"

from thingsdb_firebase.client import ClientHolder, MessagingClient
from thingsdb_firebase.errors import (
    BadDataError,
    ClientInitError,
    ConfigDecodeError,
    ConfigError,
    EmptyConfigError,
    ModuleError,
    NotConfiguredError,
    ProviderError,
    TransportError,
)
from thingsdb_firebase.models.protocol import Ex, Package, Proto
from thingsdb_firebase.module import FirebaseModule, ModuleState

__all__ = [
    "FirebaseModule",
    "ModuleState",
    "ClientHolder",
    "MessagingClient",
    "ModuleError",
    "BadDataError",
    "ProviderError",
    "ConfigError",
    "ConfigDecodeError",
    "EmptyConfigError",
    "ClientInitError",
    "NotConfiguredError",
    "TransportError",
    "Proto",
    "Ex",
    "Package",
]
