"""
Firebase messaging client and the shared handle the module keeps it in.
"""

import itertools
import logging
import threading
from typing import Any, Callable, Optional

import firebase_admin
from firebase_admin import credentials, messaging

from thingsdb_firebase.errors import NotConfiguredError

logger = logging.getLogger(__name__)

_app_counter = itertools.count(1)


class MessagingClient:
    """One initialized Firebase app plus the messaging calls the module uses."""

    def __init__(self, app: firebase_admin.App):
        self._app = app

    @classmethod
    def from_credentials(cls, info: dict[str, Any], name: str = "firebase") -> "MessagingClient":
        """Initialize a uniquely named Firebase app from service account fields.

        Raises ValueError (bad credentials) or whatever firebase_admin raises
        while initializing the app.
        """
        cred = credentials.Certificate(info)
        app = firebase_admin.initialize_app(cred, name=f"{name}-{next(_app_counter)}")
        return cls(app)

    @property
    def name(self) -> str:
        return self._app.name

    @property
    def project_id(self) -> Optional[str]:
        return self._app.project_id

    def send(self, message: messaging.Message) -> str:
        return messaging.send(message, app=self._app)

    def send_each_for_multicast(self, message: messaging.MulticastMessage) -> messaging.BatchResponse:
        return messaging.send_each_for_multicast(message, app=self._app)

    def close(self) -> None:
        firebase_admin.delete_app(self._app)


ClientFactory = Callable[[dict[str, Any]], MessagingClient]


class ClientHolder:
    """Owns the process-wide MessagingClient.

    Installation and lookup share one lock so a reader never sees a client
    that is still being swapped in.
    """

    def __init__(self, factory: Optional[ClientFactory] = None, name: str = "firebase"):
        self._factory = factory or (lambda info: MessagingClient.from_credentials(info, name=name))
        self._lock = threading.Lock()
        self._client: Optional[MessagingClient] = None

    def create(self, info: dict[str, Any]) -> MessagingClient:
        return self._factory(info)

    def install(self, client: MessagingClient) -> Optional[MessagingClient]:
        """Replace the current client, returning the previous one (if any)."""
        with self._lock:
            previous, self._client = self._client, client
        return previous

    def get(self) -> MessagingClient:
        with self._lock:
            if self._client is None:
                raise NotConfiguredError()
            return self._client

    def close(self) -> None:
        with self._lock:
            client, self._client = self._client, None
        if client is not None:
            try:
                client.close()
            except Exception as e:
                logger.warning(f"Failed to close Firebase app {client.name}: {e}")
