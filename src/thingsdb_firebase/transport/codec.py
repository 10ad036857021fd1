"""
Wire codec for the ThingsDB module protocol.

Layout of a package:
    [uint32 size][uint16 pid][uint8 tp][uint8 check][size bytes msgpack]

All header fields are little-endian and `check` is `tp ^ 0xff`.
"""

import struct
from typing import Any, Iterator, Optional

import msgpack

from thingsdb_firebase.errors import BadDataError, TransportError
from thingsdb_firebase.models.protocol import Ex, Package, Proto

HEADER = struct.Struct("<IHBB")
HEADER_SIZE = HEADER.size

# Anything larger is treated as a framing error rather than buffered
MAX_PACKAGE_SIZE = 64 * 1024 * 1024


def pack_package(pid: int, tp: int, data: bytes = b"") -> bytes:
    return HEADER.pack(len(data), pid, tp, tp ^ 0xFF) + data


def unpack_header(buf: bytes) -> tuple[int, int, int]:
    """Return (size, pid, tp) for the header at the start of `buf`."""
    size, pid, tp, check = HEADER.unpack_from(buf)
    if tp ^ 0xFF != check:
        raise TransportError(f"Invalid package header (type {tp}, check {check})")
    if size > MAX_PACKAGE_SIZE:
        raise TransportError(f"Package size {size} exceeds the maximum of {MAX_PACKAGE_SIZE}")
    return size, pid, tp


def pack_body(value: Any) -> bytes:
    return msgpack.packb(value, use_bin_type=True)


def unpack_body(data: bytes) -> Any:
    try:
        return msgpack.unpackb(data, raw=False)
    except Exception as e:
        raise BadDataError(f"Invalid msgpack data ({e})")


def conf_ok() -> bytes:
    return pack_package(0, Proto.MODULE_CONF_OK)


def conf_err() -> bytes:
    return pack_package(0, Proto.MODULE_CONF_ERR)


def response(pid: int, value: Any) -> bytes:
    return pack_package(pid, Proto.MODULE_RES, pack_body(value))


def error(pid: int, code: Ex, message: str) -> bytes:
    return pack_package(pid, Proto.MODULE_ERR, pack_body([int(code), message]))


class PackageBuffer:
    """Collect stdin chunks and cut them into complete packages."""

    def __init__(self) -> None:
        self._buf = bytearray()
        self._header: Optional[tuple[int, int, int]] = None

    def __len__(self) -> int:
        return len(self._buf)

    def extend(self, chunk: bytes) -> None:
        self._buf.extend(chunk)

    def drain(self) -> Iterator[Package]:
        """Yield every complete package buffered so far, in arrival order."""
        while True:
            if self._header is None:
                if len(self._buf) < HEADER_SIZE:
                    return
                self._header = unpack_header(bytes(self._buf[:HEADER_SIZE]))
            size, pid, tp = self._header
            end = HEADER_SIZE + size
            if len(self._buf) < end:
                return
            pkg = Package(pid=pid, tp=tp, data=bytes(self._buf[HEADER_SIZE:end]))
            del self._buf[:end]
            self._header = None
            yield pkg

    def feed(self, chunk: bytes) -> list[Package]:
        """All-at-once form of extend + drain, for decoding bytes already in hand
        (captured replies in tests). A bad header discards the whole batch, so
        the stdin reader drains incrementally instead.
        """
        self.extend(chunk)
        return list(self.drain())
