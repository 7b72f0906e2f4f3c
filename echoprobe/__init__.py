"""
EchoProbe - a tiny TCP echo honeypot that scans back.

Listens on a configurable set of ports, echoes whatever arrives while
logging every byte per peer, and (when active) probes the connecting
peer's own ports.
"""

__version__ = "0.1.0"
