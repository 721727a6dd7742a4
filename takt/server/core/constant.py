"""Server-wide constants."""

PROJECT_NAME = "Takt"
API_V1_STR = "/api/v1"

# Page paths rendered or redirected to by the server.
LOGIN_PATH = "/login"
SUSPENDED_PATH = "/suspended"
DEFAULT_SUSPENDED_REASON = "Your organization has been suspended"
SUPPORT_EMAIL = "support@teamtakt.app"
