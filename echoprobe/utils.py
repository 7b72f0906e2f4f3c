from typing import Callable, Iterable, List, Optional

PORT_MIN = 0
PORT_MAX = 65535

# Ports at or below this number need root to probe on Unix
PRIVILEGED_PORT_MAX = 1024


class MalformedSpecError(ValueError):
    """Raised when a port specification is neither a port nor a range."""

    def __init__(self, spec: str):
        self.spec = spec
        super().__init__(f"Invalid port specification: {spec!r}")


def _parse_port(text: str, spec: str) -> int:
    text = text.strip()
    if not (text.isascii() and text.isdigit()):
        raise MalformedSpecError(spec)
    port = int(text)
    if not PORT_MIN <= port <= PORT_MAX:
        raise MalformedSpecError(spec)
    return port


def resolve_port_spec(spec: str) -> List[int]:
    """
    Resolves a single port spec into concrete ports, ascending.
    Example: "8000-8002" -> [8000, 8001, 8002], "80" -> [80]

    An inverted range ("9000-8000") is well-formed and resolves to [].
    """
    text = spec.strip()
    if text.count('-') == 1:
        start_text, end_text = text.split('-')
        start = _parse_port(start_text, spec)
        end = _parse_port(end_text, spec)
        return list(range(start, end + 1))
    return [_parse_port(text, spec)]


def resolve_port_specs(
    specs: Iterable[str],
    on_error: Optional[Callable[[MalformedSpecError], None]] = None,
) -> List[int]:
    """
    Resolves every spec independently and concatenates the results in order.
    A malformed spec is reported through `on_error` and skipped; it never
    affects its siblings.
    """
    ports = []
    for spec in specs:
        try:
            ports.extend(resolve_port_spec(spec))
        except MalformedSpecError as e:
            if on_error is not None:
                on_error(e)
    return ports
