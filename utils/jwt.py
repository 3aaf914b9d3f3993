"""JWT helpers for display purposes

Claims are decoded without signature verification. Never base an
authorization decision on them.
"""

import base64
import json
from typing import Any, Dict, Optional


def parse_jwt_claims(token: str) -> Optional[Dict[str, Any]]:
    """Parse JWT token and extract claims from payload

    Args:
        token: JWT token string

    Returns:
        Dictionary of claims, or None if the token is not a decodable JWT
    """
    if not token or token.count(".") != 2:
        return None

    try:
        _, payload, _ = token.split(".")
        # Add padding if needed
        padded = payload + "=" * (-len(payload) % 4)
        data = base64.urlsafe_b64decode(padded.encode())
        claims = json.loads(data.decode())
    except (ValueError, UnicodeDecodeError):
        return None

    return claims if isinstance(claims, dict) else None
