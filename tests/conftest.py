import io
from types import SimpleNamespace
from typing import Any, Optional

import pytest

from thingsdb_firebase.client import ClientHolder
from thingsdb_firebase.models.protocol import Package
from thingsdb_firebase.transport import codec
from thingsdb_firebase.transport.stdio import StdioTransport

CREDENTIALS = {
    "type": "service_account",
    "project_id": "test-project",
    "client_email": "module@test-project.iam.gserviceaccount.com",
}


class FakeClient:
    """Stands in for MessagingClient; records every provider call."""

    def __init__(self, info: dict[str, Any], name: str = "fake-1"):
        self.info = info
        self.name = name
        self.project_id = info.get("project_id")
        self.sent: list[Any] = []
        self.closed = False
        self.fail_with: Optional[Exception] = None

    def send(self, message: Any) -> str:
        self.sent.append(message)
        if self.fail_with is not None:
            raise self.fail_with
        return f"projects/{self.project_id}/messages/{len(self.sent)}"

    def send_each_for_multicast(self, message: Any) -> Any:
        self.sent.append(message)
        if self.fail_with is not None:
            raise self.fail_with
        responses = [
            SimpleNamespace(success=True, message_id=f"projects/{self.project_id}/messages/{i}", exception=None)
            for i, _ in enumerate(message.tokens)
        ]
        return SimpleNamespace(success_count=len(responses), failure_count=0, responses=responses)

    def close(self) -> None:
        self.closed = True


class FakeFactory:
    def __init__(self) -> None:
        self.clients: list[FakeClient] = []
        self.fail_with: Optional[Exception] = None

    def __call__(self, info: dict[str, Any]) -> FakeClient:
        if self.fail_with is not None:
            raise self.fail_with
        client = FakeClient(info, name=f"fake-{len(self.clients) + 1}")
        self.clients.append(client)
        return client


def read_replies(out: io.BytesIO) -> list[Package]:
    return codec.PackageBuffer().feed(out.getvalue())


def reply_body(pkg: Package) -> Any:
    return codec.unpack_body(pkg.data)


@pytest.fixture
def factory() -> FakeFactory:
    return FakeFactory()


@pytest.fixture
def holder(factory: FakeFactory) -> ClientHolder:
    return ClientHolder(factory=factory)


@pytest.fixture
def configured(holder: ClientHolder, factory: FakeFactory) -> FakeClient:
    holder.install(factory(CREDENTIALS))
    return factory.clients[-1]


@pytest.fixture
def out() -> io.BytesIO:
    return io.BytesIO()


@pytest.fixture
def transport(out: io.BytesIO) -> StdioTransport:
    return StdioTransport(writer=out)
