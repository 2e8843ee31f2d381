"""
Validation utilities for GDPS Launcher.
"""

import re

from gdps_launcher.core.exceptions import ValidationError

# Server ids end up as directory names on disk and in URL paths
_SERVER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def normalize_server_id(raw: str) -> str:
    """
    Trim and validate a server identifier entered by the user.
    
    Args:
        raw: Raw user input
        
    Returns:
        The trimmed identifier
        
    Raises:
        ValidationError: If the identifier is empty or contains characters
            that cannot be used as a path segment
    """
    server_id = (raw or "").strip()
    
    if not server_id:
        raise ValidationError("Invalid server ID: the ID cannot be empty", error_code="empty_id")
        
    if len(server_id) > 64:
        raise ValidationError("Invalid server ID: too long (max 64 characters)", error_code="invalid_id")
        
    if not _SERVER_ID_PATTERN.match(server_id):
        raise ValidationError(
            f"Invalid server ID '{server_id}': only letters, digits, '-' and '_' are allowed",
            error_code="invalid_id",
        )
        
    return server_id
