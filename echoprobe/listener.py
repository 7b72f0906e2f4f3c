"""
Listener Manager

Binds one listener per resolved port and keeps each one accepting until
the shutdown signal closes. A port that fails to bind, or a spec that
does not parse, is logged and skipped; the others carry on.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .config import ProbeConfig
from .handler import ConnectionHandler
from .scanner import ScanEngine
from .shutdown import ShutdownSignal, TaskTracker
from .utils import MalformedSpecError, resolve_port_specs


@dataclass
class ListenerHandle:
    """A bound listener; `port` is the actual port when 0 was requested"""
    requested_port: int
    port: int
    server: asyncio.AbstractServer


class ListenerManager:
    def __init__(self, config: ProbeConfig,
                 tasks: Optional[TaskTracker] = None,
                 scanner: Optional[ScanEngine] = None,
                 logger: Optional[logging.Logger] = None):
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.tasks = tasks or TaskTracker(self.logger)
        self.handler = ConnectionHandler(
            config,
            scanner=scanner or ScanEngine(config, logger=self.logger),
            tasks=self.tasks,
            logger=self.logger
        )
        self.listeners: List[ListenerHandle] = []
        self.failed: Dict[int, str] = {}
        self.ready = asyncio.Event()

    async def run(self, ports: Sequence[str], shutdown: ShutdownSignal):
        """
        Binds every port, then blocks until `shutdown` closes.
        Returns once all accept loops have stopped; in-flight connections
        and scans are left running (see TaskTracker.drain).
        """
        def invalid(e: MalformedSpecError):
            self.logger.error("Invalid port specification: %s", e.spec)

        try:
            for port in resolve_port_specs(ports, on_error=invalid):
                handle = await self.bind(port)
                if handle is not None:
                    self.listeners.append(handle)
        finally:
            self.ready.set()

        loops = [
            asyncio.create_task(self.accept_loop(handle, shutdown), name=f"listener-{handle.port}")
            for handle in self.listeners
        ]
        await shutdown.wait()
        await asyncio.gather(*loops)
        self.logger.info("Shutdown signal received, stopping all listeners.")

    async def bind(self, port: int) -> Optional[ListenerHandle]:
        try:
            server = await asyncio.start_server(self._on_connect, self.config.bind_host, port)
        except (OSError, ValueError) as e:
            # ValueError: an unencodable bind host (idna) fails before any socket exists
            self.logger.error("Failed to listen on port %s: %s", port, e)
            self.failed[port] = str(e)
            return None

        bound_port = server.sockets[0].getsockname()[1]
        self.logger.info("Listening on port %s", bound_port)
        return ListenerHandle(requested_port=port, port=bound_port, server=server)

    async def accept_loop(self, handle: ListenerHandle, shutdown: ShutdownSignal):
        """
        The server accepts in the background, handing every connection to
        its own task; this loop's only job is to stop it on shutdown.
        """
        await shutdown.wait()
        # close() stops accepting at once; it does not wait for clients
        handle.server.close()
        self.logger.info("Shutdown signal for listener on port %s received.", handle.port)

    def _on_connect(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        peer = writer.get_extra_info('peername')
        if not peer:
            writer.close()
            return
        self.logger.info("Accepted connection from: %s", peer)
        self.tasks.spawn(self._serve(reader, writer, peer), name=f"conn-{peer[0]}:{peer[1]}")

    async def _serve(self, reader, writer, peer):
        try:
            await self.handler.handle(reader, writer)
        except OSError as e:
            self.logger.warning("Failed to process connection from %s: %s", peer, e)
