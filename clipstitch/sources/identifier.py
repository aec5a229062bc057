"""Source identifier extraction from reference URLs."""

import re

ID_LENGTH = 11

_ID_CHARS = re.compile(r"^[A-Za-z0-9_-]{11}$")
_ID_RE = re.compile(r"(?:youtu\.be/|/v/|/u/\w/|/embed/|/shorts/|[?&]v=)([^#&?/]*)")


def extract_source_id(url: str) -> str | None:
    """Return the 11-character video identifier in ``url``, or None.

    Handles:
    - youtube.com/watch?v=ID (also with ``&v=ID`` later in the query)
    - youtu.be/ID
    - youtube.com/embed/ID, /v/ID, /shorts/ID
    """
    if not url or not isinstance(url, str):
        return None

    for match in _ID_RE.finditer(url):
        candidate = match.group(1)
        if _ID_CHARS.match(candidate):
            return candidate
    return None
