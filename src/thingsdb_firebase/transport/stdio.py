"""
Stdio transport. ThingsDB writes packages to the module's stdin and reads
replies from its stdout.

Incoming packages land on `packages`; anything that breaks the channel
(EOF, a bad header) lands on `errors` and ends reading.
"""

import asyncio
import logging
import sys
from typing import Any, BinaryIO, Optional

from thingsdb_firebase.errors import TransportError
from thingsdb_firebase.models.protocol import Ex, Package
from thingsdb_firebase.transport import codec

logger = logging.getLogger(__name__)

DEFAULT_READ_SIZE = 65536


class StdioTransport:
    def __init__(
        self,
        reader: Optional[asyncio.StreamReader] = None,
        writer: Optional[BinaryIO] = None,
        read_size: int = DEFAULT_READ_SIZE,
    ):
        self._reader = reader
        self._writer = writer if writer is not None else sys.stdout.buffer
        self._read_size = read_size
        self._buffer = codec.PackageBuffer()
        self._read_task: Optional[asyncio.Task[None]] = None
        self.packages: asyncio.Queue[Package] = asyncio.Queue()
        self.errors: asyncio.Queue[TransportError] = asyncio.Queue()

    async def start(self) -> None:
        """Attach to stdin (unless a reader was given) and start reading."""
        if self._reader is None:
            loop = asyncio.get_running_loop()
            self._reader = asyncio.StreamReader()
            protocol = asyncio.StreamReaderProtocol(self._reader)
            await loop.connect_read_pipe(lambda: protocol, sys.stdin)
        self._read_task = asyncio.get_running_loop().create_task(self._read_loop())

    async def stop(self) -> None:
        if self._read_task is not None:
            self._read_task.cancel()
            try:
                await self._read_task
            except asyncio.CancelledError:
                pass
            self._read_task = None

    async def _read_loop(self) -> None:
        assert self._reader is not None
        while True:
            try:
                chunk = await self._reader.read(self._read_size)
            except (OSError, ValueError) as e:
                self.errors.put_nowait(TransportError(f"Failed to read from stdin: {e}"))
                return
            if not chunk:
                pending = len(self._buffer)
                msg = "stdin closed" if not pending else f"stdin closed with {pending} unread bytes"
                self.errors.put_nowait(TransportError(msg))
                return
            self._buffer.extend(chunk)
            try:
                for pkg in self._buffer.drain():
                    self.packages.put_nowait(pkg)
            except TransportError as e:
                self.errors.put_nowait(e)
                return

    def _write(self, data: bytes) -> None:
        try:
            self._writer.write(data)
            self._writer.flush()
        except (OSError, ValueError) as e:
            raise TransportError(f"Failed to write to stdout: {e}")

    def write_conf_ok(self) -> None:
        self._write(codec.conf_ok())

    def write_conf_err(self) -> None:
        self._write(codec.conf_err())

    def write_response(self, pid: int, value: Any) -> None:
        self._write(codec.response(pid, value))

    def write_ex(self, pid: int, code: Ex, message: str) -> None:
        logger.debug(f"Error reply for pid {pid}: ({code.name}) {message}")
        self._write(codec.error(pid, code, message))
