"""
Messaging bridge: turns decoded requests into firebase_admin messages.
"""

from typing import Any

from firebase_admin import messaging

from thingsdb_firebase.client import ClientHolder
from thingsdb_firebase.errors import ProviderError
from thingsdb_firebase.models.request import MulticastSendRequest, SendRequest


def build_message(req: SendRequest) -> messaging.Message:
    return messaging.Message(
        notification=messaging.Notification(title=req.title, body=req.body),
        data=req.data,
        token=req.token,
    )


def build_multicast_message(req: MulticastSendRequest) -> messaging.MulticastMessage:
    return messaging.MulticastMessage(
        notification=messaging.Notification(title=req.title, body=req.body),
        data=req.data,
        tokens=list(req.tokens),
    )


def batch_response_to_dict(br: messaging.BatchResponse) -> dict[str, Any]:
    return {
        "success_count": br.success_count,
        "failure_count": br.failure_count,
        "responses": [
            {
                "success": r.success,
                "message_id": r.message_id,
                "error": str(r.exception) if r.exception is not None else None,
            }
            for r in br.responses
        ],
    }


class MessagingBridge:
    def __init__(self, holder: ClientHolder):
        self._holder = holder

    def send_message(self, req: SendRequest) -> str:
        """Send to one device token; returns the provider message id."""
        client = self._holder.get()
        message = build_message(req)
        try:
            return client.send(message)
        except Exception as e:
            raise ProviderError(f"Failed to send message ({e})")

    def send_multicast_message(self, req: MulticastSendRequest) -> dict[str, Any]:
        """Send to every token in order; returns the per-token batch result."""
        client = self._holder.get()
        message = build_multicast_message(req)
        try:
            br = client.send_each_for_multicast(message)
        except Exception as e:
            raise ProviderError(f"Failed to send multicast message ({e})")
        return batch_response_to_dict(br)
