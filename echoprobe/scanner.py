"""
Back-Scan Engine

Probes the ports of a peer that connected to us:
1. Privilege gate - well-known ports need an elevated process
2. Sequential connect - one port at a time, no retries
3. Banner read - a single bounded read for unsolicited data

Outcomes go to logs/<ip>-scan.log, rewritten per scan.
"""

import asyncio
import logging
from typing import Iterable, List, Optional

from .config import ProbeConfig
from .privilege import PrivilegeCheck, default_privilege_check
from .session_log import SessionLog
from .utils import PRIVILEGED_PORT_MAX, MalformedSpecError, resolve_port_specs

BANNER_BUFFER_SIZE = 1024


def scan_targets(specs: Iterable[str], on_error=None) -> List[int]:
    """Ports a scan would probe; port 0 is never a target."""
    return [p for p in resolve_port_specs(specs, on_error) if p != 0]


def requires_privilege(specs: Iterable[str]) -> bool:
    return any(port <= PRIVILEGED_PORT_MAX for port in scan_targets(specs))


class ScanEngine:
    def __init__(self, config: ProbeConfig,
                 privilege_check: Optional[PrivilegeCheck] = None,
                 logger: Optional[logging.Logger] = None):
        self.config = config
        self.privilege_check = privilege_check or default_privilege_check()
        self.logger = logger or logging.getLogger(__name__)

    async def scan(self, target_ip: str):
        """
        Runs one scan session against `target_ip`. Never raises for
        per-port failures; the whole scan is skipped when privilege is missing.
        """
        if not self.config.active:
            self.logger.info("Port scanning is disabled.")
            return

        if requires_privilege(self.config.scan_ports) and not self.privilege_check():
            self.logger.error("Root privileges are required for scanning well-known ports.")
            return

        def skip(e: MalformedSpecError):
            self.logger.warning("Skipping scan port spec %r", e.spec)

        ports = scan_targets(self.config.scan_ports, on_error=skip)

        self.logger.info("Initiating port scan for: %s", target_ip)
        with SessionLog.for_scan(self.config.log_dir, target_ip) as log:
            for port in ports:
                await self.scan_port(target_ip, port, log)
        self.logger.info("Port scan for %s finished (%d ports)", target_ip, len(ports))

    async def scan_port(self, target_ip: str, port: int, log: SessionLog):
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(target_ip, port),
                timeout=self.config.scan_connect_timeout
            )
        except (OSError, asyncio.TimeoutError) as e:
            reason = str(e) or type(e).__name__
            msg = f"Failed to connect to port {port}: {reason}"
            self.logger.debug(msg)
            log.write(f"[WARN] {msg}")
            return

        try:
            msg = f"Port {port} is open"
            self.logger.info(msg)
            log.write(msg)

            data = b""
            try:
                data = await asyncio.wait_for(reader.read(BANNER_BUFFER_SIZE),
                                              timeout=self.config.banner_timeout)
            except (OSError, asyncio.TimeoutError):
                pass

            if data:
                text = data.decode('utf-8', errors='replace').strip()
                msg = f"Received data from port {port}: {text}"
                self.logger.info(msg)
                log.write(msg)
            else:
                log.write(f"[INFO] {port}: No immediate data received or read timed out")
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass
