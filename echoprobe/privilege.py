"""
Privilege capability checks.

Probing well-known ports is gated on an elevated process. Unix answers
with the effective user id; platforms without that concept always pass.
"""

import os
from typing import Callable

PrivilegeCheck = Callable[[], bool]


class UnixPrivilegeCheck:
    """True when the effective user is root."""

    def __call__(self) -> bool:
        return os.geteuid() == 0


class NullPrivilegeCheck:
    """Platforms with no privilege concept never block a scan."""

    def __call__(self) -> bool:
        return True


def default_privilege_check() -> PrivilegeCheck:
    if hasattr(os, "geteuid"):
        return UnixPrivilegeCheck()
    return NullPrivilegeCheck()
