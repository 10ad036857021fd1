"""
Config handler: applies a MODULE_CONF body and installs the messaging client.
"""

import json
import logging
from typing import Any

from pydantic import ValidationError

from thingsdb_firebase.client import ClientHolder
from thingsdb_firebase.errors import BadDataError, ClientInitError, ConfigDecodeError, EmptyConfigError
from thingsdb_firebase.models.config import ModuleConfig
from thingsdb_firebase.transport.codec import unpack_body

logger = logging.getLogger(__name__)


def parse_config(raw: bytes) -> ModuleConfig:
    try:
        body = unpack_body(raw)
    except BadDataError as e:
        raise ConfigDecodeError(f"Missing or invalid Firebase configuration ({e})")
    if not isinstance(body, dict):
        raise ConfigDecodeError("Missing or invalid Firebase configuration (expecting a map)")
    try:
        return ModuleConfig.model_validate(body)
    except ValidationError as e:
        raise ConfigDecodeError(f"Missing or invalid Firebase configuration ({e.error_count()} errors)")


def credentials_info(conf: ModuleConfig) -> dict[str, Any]:
    """Service account fields as a map, whatever form they were sent in."""
    creds = conf.credentials
    if not creds:
        raise EmptyConfigError()
    if isinstance(creds, dict):
        return creds
    if isinstance(creds, bytes):
        try:
            creds = creds.decode("utf-8")
        except UnicodeDecodeError:
            raise ConfigDecodeError("Firebase credentials are not valid UTF-8")
    try:
        info = json.loads(creds)
    except (ValueError, RecursionError) as e:
        raise ConfigDecodeError(f"Firebase credentials are not valid JSON ({e})")
    if not isinstance(info, dict):
        raise ConfigDecodeError("Firebase credentials must be a JSON object")
    if not info:
        raise EmptyConfigError()
    return info


def apply_config(holder: ClientHolder, raw: bytes) -> None:
    """Build a client from `raw` and install it; raises a ConfigError subclass.

    A failure leaves the previously installed client (if any) in place.
    """
    info = credentials_info(parse_config(raw))
    try:
        client = holder.create(info)
    except Exception as e:
        raise ClientInitError(f"Failed to initialize Firebase ({e})")

    previous = holder.install(client)
    logger.info(f"Firebase client {client.name} installed (project: {client.project_id})")
    if previous is not None:
        try:
            previous.close()
        except Exception as e:
            logger.warning(f"Failed to close previous Firebase app {previous.name}: {e}")
