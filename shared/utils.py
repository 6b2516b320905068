from __future__ import annotations
from typing import List, Optional, Sequence, Tuple

# ========================================
#           INPUT VALIDATION HELPERS
# ========================================

def split_hostport(s: str) -> Optional[Tuple[str, int]]:
    """
    Split 'host:port' into its parts, or None if it is not a valid host:port.

    Examples: "localhost:8001", "192.168.1.5:2448", "node.example.com:8001"
    """
    if ':' not in s:
        return None
    host, port_s = s.rsplit(':', 1)
    if not host or not port_s.isdigit():
        return None
    port = int(port_s)
    if not 0 < port <= 65535:
        return None
    return host, port


def is_valid_port(port: int) -> bool:
    return isinstance(port, int) and not isinstance(port, bool) and 0 < port <= 65535


# ========================================
#           BYTE ARRAY HELPERS
# ========================================
"""
The node's JSON codec encodes fixed-size byte arrays as lists of integers,
so raw bytes are converted before they go into a payload and back after
they come out of a reply.
"""

def pad_bytes(data: bytes | Sequence[int], length: int) -> List[int]:
    """
    Right-pad `data` with zero bytes up to `length` and return it as a list
    of ints. Input that is already `length` or longer is returned unchanged.
    """
    values = list(data)
    if len(values) >= length:
        return values
    return values + [0] * (length - len(values))


def to_hex(values: Optional[Sequence[int]]) -> str:
    """Hex-encode a list of byte values; a null array encodes as ''."""
    if values is None:
        return ""
    return bytes(values).hex()
