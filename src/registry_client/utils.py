"""
Utility functions for the registry clients.

URI building and serial number parsing. Query strings are built by httpx
``params=``.
"""

import re
from typing import Optional, Tuple

_SERIAL_BLOCK = re.compile(r"^\D*?(\d+)-\D*?(\d+)$")


def generate_uri_for_host_and_port(protocol: str, host: str, port: Optional[int] = None) -> str:
    """Build ``protocol://host[:port]``."""
    uri = f"{protocol}://{host}"
    if port:
        uri += f":{port}"
    return uri


def parse_serial_number(serial_number_block: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Split a serial number block such as ``"ABC100-ABC199"`` into its start and end.

    Returns:
        (unit_block_start, unit_block_end), or (None, None) when the block is malformed
    """
    if not serial_number_block:
        return None, None
    match = _SERIAL_BLOCK.match(serial_number_block.strip())
    if not match:
        return None, None
    return match.group(1), match.group(2)
