"""Event loop: packages in over stdin, replies out over stdout."""

import asyncio
import io

import pytest

from conftest import CREDENTIALS, read_replies, reply_body
from thingsdb_firebase.models.protocol import Ex, Proto
from thingsdb_firebase.module import FirebaseModule, ModuleState
from thingsdb_firebase.transport import codec
from thingsdb_firebase.transport.stdio import StdioTransport


def conf(body) -> bytes:
    return codec.pack_package(0, Proto.MODULE_CONF, codec.pack_body(body))


def req(pid: int, body) -> bytes:
    return codec.pack_package(pid, Proto.MODULE_REQ, codec.pack_body(body))


async def run_module(holder, writer, data: bytes) -> FirebaseModule:
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    reader.feed_eof()
    module = FirebaseModule(StdioTransport(reader=reader, writer=writer), holder=holder)
    await asyncio.wait_for(module.run(), timeout=5)
    return module


class BrokenPipe(io.RawIOBase):
    def write(self, b):
        raise BrokenPipeError("host went away")


@pytest.mark.asyncio
async def test_configure_then_send(holder, factory, out):
    module = await run_module(holder, out, b"".join([
        conf({"credentials": CREDENTIALS}),
        req(1, {"handler": "send-message", "token": "abc", "title": "T", "body": "B", "data": {"k": "v"}}),
    ]))

    conf_ok, res = read_replies(out)
    assert conf_ok.tp == Proto.MODULE_CONF_OK
    assert res.tp == Proto.MODULE_RES
    assert res.pid == 1
    assert reply_body(res) == "projects/test-project/messages/1"

    [client] = factory.clients
    [message] = client.sent
    assert message.token == "abc"
    assert message.data == {"k": "v"}

    # stdin EOF is a transport error: the loop shuts down and deletes the app
    assert module.state is ModuleState.SHUTDOWN
    assert module.exit_error is not None
    assert client.closed


@pytest.mark.asyncio
async def test_request_before_configuration(holder, out):
    module = await run_module(holder, out, req(3, {"handler": "send-message", "token": "abc"}))
    [reply] = read_replies(out)
    assert reply.pid == 3
    assert reply.tp == Proto.MODULE_ERR
    code, message = reply_body(reply)
    assert code == Ex.OPERATION
    assert "not configured" in message
    assert module.state is ModuleState.SHUTDOWN


@pytest.mark.asyncio
async def test_invalid_configuration(holder, factory, out):
    await run_module(holder, out, conf({"credentials": {}}) + conf({"nope": 1}) + conf(["x"]))
    replies = read_replies(out)
    assert [r.tp for r in replies] == [Proto.MODULE_CONF_ERR] * 3
    assert factory.clients == []


@pytest.mark.asyncio
async def test_replies_in_request_order(holder, configured, out):
    await run_module(holder, out, b"".join([
        req(10, {"handler": "send-message", "token": "a"}),
        req(11, {"handler": None}),
        req(12, {"handler": "send-multicast-message", "tokens": ["b", "c"]}),
        req(13, {"handler": "nope"}),
    ]))
    replies = read_replies(out)
    assert [r.pid for r in replies] == [10, 11, 12, 13]
    assert [r.tp for r in replies] == [Proto.MODULE_RES, Proto.MODULE_ERR, Proto.MODULE_RES, Proto.MODULE_ERR]
    assert reply_body(replies[1]) == [Ex.BAD_DATA, "Missing handler"]
    assert reply_body(replies[3]) == [Ex.BAD_DATA, "Unknown handler: nope"]


@pytest.mark.asyncio
async def test_unexpected_package_type_is_ignored(holder, configured, out):
    await run_module(holder, out, b"".join([
        codec.pack_package(20, Proto.MODULE_RES, codec.pack_body(None)),
        req(21, {"handler": "send-message", "token": "a"}),
    ]))
    [reply] = read_replies(out)
    assert reply.pid == 21


@pytest.mark.asyncio
async def test_invalid_header_stops_the_loop(holder, configured, out):
    bad = bytearray(req(31, {"handler": "send-message", "token": "b"}))
    bad[7] = 0
    module = await run_module(holder, out, req(30, {"handler": "send-message", "token": "a"}) + bytes(bad))
    [reply] = read_replies(out)
    assert reply.pid == 30
    assert module.state is ModuleState.SHUTDOWN
    assert "Invalid package header" in str(module.exit_error)
    assert len(configured.sent) == 1


@pytest.mark.asyncio
async def test_write_failure_is_fatal(holder, configured):
    module = await run_module(holder, BrokenPipe(), b"".join([
        req(40, {"handler": "send-message", "token": "a"}),
        req(41, {"handler": "send-message", "token": "b"}),
    ]))
    assert module.state is ModuleState.SHUTDOWN
    assert "Failed to write to stdout" in str(module.exit_error)
    assert len(configured.sent) == 1


@pytest.mark.asyncio
async def test_request_shutdown(holder, configured, out):
    reader = asyncio.StreamReader()
    module = FirebaseModule(StdioTransport(reader=reader, writer=out), holder=holder)
    task = asyncio.create_task(module.run())
    reader.feed_data(req(50, {"handler": "send-message", "token": "a"}))
    await asyncio.sleep(0.05)
    module.request_shutdown()
    await asyncio.wait_for(task, timeout=5)

    [reply] = read_replies(out)
    assert reply.pid == 50
    assert module.state is ModuleState.SHUTDOWN
    assert module.exit_error is None
    assert configured.closed


@pytest.mark.asyncio
async def test_deeply_nested_credentials_are_rejected(holder, factory, out):
    await run_module(holder, out, b"".join([
        conf({"credentials": "[" * 200000}),
        req(60, {"handler": "send-message", "token": "a"}),
    ]))
    conf_err, reply = read_replies(out)
    assert conf_err.tp == Proto.MODULE_CONF_ERR
    assert reply.pid == 60
    assert reply_body(reply)[0] == Ex.OPERATION
    assert factory.clients == []


@pytest.mark.asyncio
async def test_unexpected_config_failure_still_replies(holder, out, monkeypatch):
    def broken_apply(holder, raw):
        raise RecursionError("maximum recursion depth exceeded")

    monkeypatch.setattr("thingsdb_firebase.module.apply_config", broken_apply)
    module = await run_module(holder, out, conf({"credentials": CREDENTIALS}))
    [reply] = read_replies(out)
    assert reply.tp == Proto.MODULE_CONF_ERR
    assert module.state is ModuleState.SHUTDOWN
