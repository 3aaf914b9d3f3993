"""Shared utilities package for the community session client"""

from .storage import TokenStorage, MemoryTokenStorage
from .jwt import parse_jwt_claims
from .debug_console import (
    DebugCapturingConsole,
    create_debug_console,
    mask_credentials,
    setup_debug_logger,
)

__all__ = [
    "TokenStorage",
    "MemoryTokenStorage",
    "parse_jwt_claims",
    "DebugCapturingConsole",
    "create_debug_console",
    "mask_credentials",
    "setup_debug_logger",
]
