import socket

import pytest

from echoprobe.config import ProbeConfig


@pytest.fixture
def make_config(tmp_path):
    """Builds a ProbeConfig that logs into the test's temp dir."""
    def _make(**kwargs):
        values = {
            "ports": ["0"],
            "bind_host": "127.0.0.1",
            "log_dir": tmp_path / "logs",
            "scan_connect_timeout": 1.0,
            "banner_timeout": 0.3,
        }
        values.update(kwargs)
        return ProbeConfig(**values)
    return _make


@pytest.fixture
def closed_port():
    """A local port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port
