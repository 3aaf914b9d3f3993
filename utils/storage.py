import json
import logging
import os
import platform
import time
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any

from settings import TOKEN_FILE
from .jwt import parse_jwt_claims

logger = logging.getLogger(__name__)


class TokenStorage:
    """Durable holder for the short-lived access credential

    One JSON file per user profile, readable only by its owner. Any storage
    failure is treated as "no credential": callers never see an exception.
    """

    def __init__(self, token_file: Optional[str] = None):
        self.token_path = Path(token_file if token_file else TOKEN_FILE)

    def _ensure_secure_directory(self):
        """Create parent directory with secure permissions"""
        parent_dir = self.token_path.parent
        if not parent_dir.exists():
            parent_dir.mkdir(parents=True, exist_ok=True)
            # Set directory permissions to 700 on Unix-like systems
            if platform.system() != "Windows":
                os.chmod(parent_dir, 0o700)

    def _load(self) -> Optional[Dict[str, Any]]:
        if not self.token_path.exists():
            return None

        try:
            data = json.loads(self.token_path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Token storage unreadable, treating as empty: {e}")
            return None

        if not isinstance(data, dict) or not data.get("access_token"):
            return None
        return data

    def get(self) -> Optional[str]:
        """Return the stored access token, or None"""
        data = self._load()
        if not data:
            return None
        return data["access_token"]

    def set(self, access_token: str) -> bool:
        """Persist the access token

        Returns:
            True if the token was written
        """
        data = {
            "access_token": access_token,
            "saved_at": int(time.time()),
        }

        try:
            self._ensure_secure_directory()
            self.token_path.write_text(json.dumps(data, indent=2))
            if platform.system() != "Windows":
                os.chmod(self.token_path, 0o600)
        except OSError as e:
            logger.error(f"Failed to save access token: {e}")
            return False

        logger.debug(f"Saved access token to {self.token_path}")
        return True

    def clear(self) -> bool:
        """Remove the stored access token"""
        try:
            if self.token_path.exists():
                self.token_path.unlink()
                logger.debug("Cleared stored access token")
            return True
        except OSError as e:
            logger.error(f"Failed to clear access token: {e}")
            return False

    def get_status(self) -> Dict[str, Any]:
        """Get token status without exposing secrets"""
        data = self._load()
        if not data:
            return {
                "has_token": False,
                "saved_at": None,
                "expires_at": None,
                "is_expired": None,
                "time_until_expiry": None,
                "token_file": str(self.token_path),
            }

        saved_at = data.get("saved_at")
        saved_str = datetime.fromtimestamp(saved_at).isoformat() if isinstance(saved_at, int) else None

        # Opaque tokens have no readable expiry; JWTs usually carry "exp"
        claims = parse_jwt_claims(data["access_token"]) or {}
        exp = claims.get("exp")
        expires_str = None
        is_expired = None
        time_str = None

        if isinstance(exp, (int, float)):
            current_time = int(time.time())
            expires_str = datetime.fromtimestamp(exp).isoformat()
            remaining = int(exp) - current_time
            is_expired = remaining <= 0
            if is_expired:
                time_str = "expired"
            else:
                hours = remaining // 3600
                minutes = (remaining % 3600) // 60
                time_str = f"{hours}h {minutes}m" if hours > 0 else f"{minutes}m"

        return {
            "has_token": True,
            "saved_at": saved_str,
            "expires_at": expires_str,
            "is_expired": is_expired,
            "time_until_expiry": time_str,
            "token_file": str(self.token_path),
        }

    @property
    def token_file(self) -> Path:
        """Get the token file path"""
        return self.token_path


class MemoryTokenStorage:
    """Process-local token holder with the same get/set/clear contract"""

    def __init__(self, access_token: Optional[str] = None):
        self._access_token = access_token

    def get(self) -> Optional[str]:
        return self._access_token

    def set(self, access_token: str) -> bool:
        self._access_token = access_token
        return True

    def clear(self) -> bool:
        self._access_token = None
        return True
