"""Application-wide constants for the classdesk backend."""

from __future__ import annotations

BRAND_NAME = "classdesk"

API_TITLE = f"{BRAND_NAME} API"
API_VERSION = "1.0.0"
API_DESCRIPTION = "Class scheduling, enrollment, attendance and reporting for tuition centres."

# Session duration fallbacks (settings may override)
MIN_SESSION_DURATION = 15  # minutes
MAX_SESSION_DURATION = 480  # minutes (8 hours)

# Query limits
DEFAULT_QUERY_LIMIT = 100
MAX_QUERY_LIMIT = 1000

# Sentinel accepted by every "<dimension>|all" query filter
ALL_FILTER_VALUE = "all"

# Identity headers supplied by the upstream auth gateway
USER_ID_HEADER = "X-User-Id"
USER_ROLE_HEADER = "X-User-Role"
