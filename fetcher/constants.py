"""Constants for the request pipeline.

Centralizes defaults and status ranges so the client, transport and tests
agree on the same values.
"""

# HTTP Status Code Ranges
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300

# Request defaults
DEFAULT_TIMEOUT_MS = 8000
DEFAULT_RETRIES = 1
DEFAULT_CONTENT_TYPE = "application/json"

# Header names
CONTENT_TYPE_HEADER = "Content-Type"
AUTHORIZATION_HEADER = "Authorization"
CACHE_CONTROL_HEADER = "Cache-Control"

# Content type markers used by the response classifier
JSON_CONTENT_MARKER = "application/json"
TEXT_CONTENT_MARKER = "text/"

# Hook points
HOOK_BEFORE = "before"
HOOK_AFTER = "after"
