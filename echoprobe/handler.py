"""
Connection Handler

Owns one accepted connection: records it in logs/<peer-ip>.log, kicks off
a back-scan of the peer when active, then echoes every byte until the
peer closes, goes idle past the timeout, or the socket fails.
"""

import asyncio
import logging
from typing import Optional

from .config import ProbeConfig
from .scanner import ScanEngine
from .session_log import SessionLog
from .shutdown import TaskTracker

ECHO_BUFFER_SIZE = 1024


class ConnectionHandler:
    def __init__(self, config: ProbeConfig, timeout: Optional[float] = None,
                 scanner: Optional[ScanEngine] = None,
                 tasks: Optional[TaskTracker] = None,
                 logger: Optional[logging.Logger] = None):
        self.config = config
        self.timeout = timeout if timeout is not None else config.connection_timeout
        self.logger = logger or logging.getLogger(__name__)
        self.scanner = scanner or ScanEngine(config, logger=self.logger)
        self.tasks = tasks or TaskTracker(self.logger)

    async def handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        """
        Runs the echo loop for one connection.
        Clean close and inactivity timeout return normally; socket errors
        raise OSError for the caller to report.
        """
        try:
            await self._echo(reader, writer)
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass

    async def _echo(self, reader, writer):
        peer = writer.get_extra_info('peername')
        if not peer:
            return
        peer_ip, peer_port = peer[0], peer[1]

        with SessionLog.for_connection(self.config.log_dir, peer_ip) as log:
            log.write(f"Connection from: {peer_ip}:{peer_port}")

            if self.config.active:
                # Scan outlives this connection; its result is never awaited
                self.tasks.spawn(self.scanner.scan(peer_ip), name=f"scan-{peer_ip}")

            while True:
                try:
                    data = await asyncio.wait_for(reader.read(ECHO_BUFFER_SIZE), timeout=self.timeout)
                except asyncio.TimeoutError:
                    log.write("Connection timed out due to inactivity")
                    return

                if not data:
                    log.write("Connection closed by client")
                    return

                log.write(f"Received data: {data!r}")
                writer.write(data)
                await writer.drain()
