"""Shared constants used across the application."""

from datetime import datetime, timezone

# Scheduling Defaults
# -------------------

DEFAULT_TICK_INTERVAL = 10.0
"""Default number of seconds between two synchronization ticks."""

DEFAULT_REQUEST_TIMEOUT = 30.0
"""Default timeout in seconds for outbound calls.

Applied separately to each phase of a request (connect, write, read and pool
acquisition), so a server trickling its response can hold one call open longer.
"""

# Issue Source Defaults
# ---------------------

DEFAULT_GITHUB_API_URL = "https://api.github.com"
"""Default GitHub REST API base URL."""

DEFAULT_PAGE_SIZE = 50
"""Default number of issues requested per page."""

MAX_PAGE_SIZE = 100
"""GitHub's upper bound for ``per_page``."""

GHOST_AUTHOR = "ghost"
"""Handle recorded for issues whose author account no longer exists."""

# Store Defaults
# --------------

DEFAULT_STORE_TABLE = "Issues"
"""Default PostgREST table holding issue records."""

BOOTSTRAP_WATERMARK = datetime(1970, 1, 1, tzinfo=timezone.utc)
"""Watermark used when the store holds no processed record yet."""

# Message Templates
# -----------------

DEFAULT_NOTIFICATION_TEMPLATE = "I noticed a new external <{{ issue_url }}|issue>. Take a look?"
"""Jinja2 template for the chat message sent for an external issue."""

DEFAULT_COMMENT_TEMPLATE = (
    "Hi, this is {{ repository_owner }}'s GitSorted bot.\n"
    "While one of our developers cooks up a reply, please search for anything related in our community channels or our docs.\n"
    "Also, if you haven't posted a reproduction, please do so (we prioritize those tickets)."
)
"""Jinja2 template for the acknowledgment comment posted on an external issue."""
