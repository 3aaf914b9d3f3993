import tempfile
from pathlib import Path
from config.loader import get_config_loader

# Get the config loader instance
config = get_config_loader()

LOG_LEVEL = config.get("LOG_LEVEL", "info")

# Backend API origin. The refresh cookie is scoped to this origin.
API_BASE_URL = config.get("API_BASE_URL", "http://localhost:8000")

# Timeout configuration
CONNECT_TIMEOUT = config.get("CONNECT_TIMEOUT", 10.0)
REQUEST_TIMEOUT = config.get("REQUEST_TIMEOUT", 30.0)
# refresh() and the identity fetch must never hang the coalesced refresh queue
REFRESH_TIMEOUT = config.get("REFRESH_TIMEOUT", 10.0)
IDENTITY_TIMEOUT = config.get("IDENTITY_TIMEOUT", 10.0)

# Backend endpoints (hardcoded - part of the server contract)
LOGIN_PATH = "/auth/login"
SIGNUP_PATH = "/auth/signup"
REFRESH_PATH = "/auth/refresh"
LOGOUT_PATH = "/auth/logout"
ME_PATH = "/auth/me"
GOOGLE_ID_TOKEN_LOGIN_PATH = "/login/google"
GOOGLE_CALLBACK_PATH = "/auth/google/callback"

# Host navigation targets
LOGIN_PAGE = "/login"
HOME_PAGE = "/"

# Google OAuth configuration
GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_SCOPES = "openid email profile"
GOOGLE_CLIENT_ID = config.get("GOOGLE_CLIENT_ID", "")
GOOGLE_REDIRECT_URI = config.get("GOOGLE_REDIRECT_URI", "http://localhost:5173/auth/callback")

# Seconds the OAuth failure message stays visible before redirecting to login
OAUTH_ERROR_REDIRECT_DELAY = config.get("OAUTH_ERROR_REDIRECT_DELAY", 2.0)
# Seconds the CLI waits for the provider to redirect back
OAUTH_CALLBACK_TIMEOUT = config.get("OAUTH_CALLBACK_TIMEOUT", 300)

# Client-side persisted state
TOKEN_FILE = config.get("TOKEN_FILE", str(Path.home() / ".community-client" / "session.json"))
OAUTH_STATE_FILE = config.get("OAUTH_STATE_FILE", str(Path(tempfile.gettempdir()) / "community_oauth_state.json"))
