"""
Binary patch helpers.

Pure functions that rewrite the database URL embedded in the game
executable. The URL appears both as plain bytes and base64-encoded; every
occurrence except the last one of each form is replaced.
"""

import base64
from typing import List

from gdps_launcher.core.exceptions import HostError


def build_replacement(server_url: str, original_url: str) -> bytes:
    """
    Encode the server URL to the exact length of the original URL.
    
    Args:
        server_url: URL of the private server database
        original_url: URL shipped with the game
        
    Returns:
        ``server_url`` bytes, NUL-padded to ``len(original_url)``
        
    Raises:
        HostError: If the server URL does not fit
    """
    new_bytes = server_url.encode("utf-8")
    original_len = len(original_url.encode("utf-8"))
    if len(new_bytes) > original_len:
        raise HostError(
            f"URL too long! Max: {original_len}, Got: {len(new_bytes)}",
            error_code="url_too_long",
            details={"url": server_url},
        )
    return new_bytes.ljust(original_len, b"\x00")


def find_all_positions(data: bytes, pattern: bytes) -> List[int]:
    """Offsets of every (possibly overlapping) occurrence of ``pattern``."""
    positions = []
    if not pattern:
        return positions
    start = data.find(pattern)
    while start != -1:
        positions.append(start)
        start = data.find(pattern, start + 1)
    return positions


def replace_all_but_last(data: bytearray, old: bytes, new: bytes) -> int:
    """
    Overwrite all occurrences of ``old`` except the last one, in place.
    
    Returns:
        Number of replaced occurrences
    """
    if len(old) != len(new):
        raise ValueError("Replacement must have the same length as the original")
    positions = find_all_positions(bytes(data), old)
    if len(positions) < 2:
        return 0
    for pos in positions[:-1]:
        data[pos:pos + len(old)] = new
    return len(positions) - 1


def patch_binary(data: bytes, original_url: str, replacement: bytes) -> bytes:
    """
    Rewrite the game's database URL, raw and base64 forms.
    
    Args:
        data: Executable contents
        original_url: URL shipped with the game
        replacement: Output of :func:`build_replacement`
        
    Returns:
        Patched executable contents
    """
    original = original_url.encode("utf-8")
    patched = bytearray(data)
    replace_all_but_last(patched, original, replacement)
    replace_all_but_last(
        patched,
        base64.b64encode(original),
        base64.b64encode(replacement),
    )
    return bytes(patched)
