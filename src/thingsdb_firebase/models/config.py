"""
Configuration payload, sent once by ThingsDB in a MODULE_CONF package.
"""

from typing import Any, Optional, Union

from pydantic import BaseModel


class ModuleConfig(BaseModel):
    """MODULE_CONF body: {credentials: <service account map or JSON document>}"""
    credentials: Optional[Union[dict[str, Any], str, bytes]] = None
