"""
Module event loop.

Handles one package at a time from the transport's package queue. A
transport error (or a termination signal) moves the loop to SHUTDOWN, the
only terminal state; the installed Firebase app is deleted on the way out.
"""

import asyncio
import enum
import logging
import signal
from typing import Optional

from thingsdb_firebase.client import ClientHolder
from thingsdb_firebase.configure import apply_config
from thingsdb_firebase.dispatcher import Dispatcher
from thingsdb_firebase.errors import ConfigError, TransportError
from thingsdb_firebase.messaging import MessagingBridge
from thingsdb_firebase.models.protocol import Package, Proto
from thingsdb_firebase.transport.stdio import StdioTransport

logger = logging.getLogger(__name__)


class ModuleState(str, enum.Enum):
    INIT = "init"
    RUNNING = "running"
    SHUTDOWN = "shutdown"


class FirebaseModule:
    def __init__(
        self,
        transport: StdioTransport,
        holder: Optional[ClientHolder] = None,
        name: str = "firebase",
    ):
        self.name = name
        self.state = ModuleState.INIT
        self.exit_error: Optional[TransportError] = None
        self._transport = transport
        self._holder = holder or ClientHolder(name=name)
        self._dispatcher = Dispatcher(transport, MessagingBridge(self._holder))
        self._stop = asyncio.Event()

    def request_shutdown(self) -> None:
        """Stop once the packages already received are handled (signal path)."""
        logger.info(f"Shutdown requested for module {self.name}")
        self._stop.set()

    async def run(self, install_signal_handlers: bool = False) -> None:
        loop = asyncio.get_running_loop()
        if install_signal_handlers:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, self.request_shutdown)

        await self._transport.start()
        self.state = ModuleState.RUNNING
        logger.info(f"Module {self.name} started")

        err_task = loop.create_task(self._transport.errors.get())
        stop_task = loop.create_task(self._stop.wait())
        try:
            while self.state is ModuleState.RUNNING:
                pkg_task = loop.create_task(self._transport.packages.get())
                done, _ = await asyncio.wait(
                    {pkg_task, err_task, stop_task},
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if pkg_task in done:
                    # packages received before a channel error are still answered
                    try:
                        await self.handle(pkg_task.result())
                    except TransportError as e:
                        self._fail(e)
                    continue
                pkg_task.cancel()
                if err_task in done:
                    self._fail(err_task.result())
                break
        finally:
            err_task.cancel()
            stop_task.cancel()
            if install_signal_handlers:
                for sig in (signal.SIGINT, signal.SIGTERM):
                    loop.remove_signal_handler(sig)
            await self._shutdown()

    async def handle(self, pkg: Package) -> None:
        if pkg.tp == Proto.MODULE_CONF:
            self.on_conf(pkg)
        elif pkg.tp == Proto.MODULE_REQ:
            await self._dispatcher.handle(pkg)
        else:
            logger.warning(f"Unexpected package type: {pkg.tp}")

    def on_conf(self, pkg: Package) -> None:
        try:
            apply_config(self._holder, pkg.data)
        except ConfigError as e:
            logger.error(str(e))
            self._transport.write_conf_err()
            return
        except Exception:
            logger.exception("Unexpected error while applying the Firebase configuration")
            self._transport.write_conf_err()
            return
        self._transport.write_conf_ok()

    def _fail(self, err: TransportError) -> None:
        logger.error(f"Error: {err}")
        self.exit_error = err
        self.state = ModuleState.SHUTDOWN

    async def _shutdown(self) -> None:
        self.state = ModuleState.SHUTDOWN
        await self._transport.stop()
        self._holder.close()
        logger.info(f"Module {self.name} stopped")
