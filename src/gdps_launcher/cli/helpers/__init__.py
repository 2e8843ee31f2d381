"""
CLI helper functions and utilities.
"""

from .display import (
    catalog_to_json,
    render_catalog_table,
    show_patch_result,
    show_server_panel,
    show_unresolved_servers,
)
from .errors import handle_errors

__all__ = [
    'catalog_to_json',
    'render_catalog_table',
    'show_patch_result',
    'show_server_panel',
    'show_unresolved_servers',
    'handle_errors',
]
