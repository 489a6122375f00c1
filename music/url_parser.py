import re
from enum import Enum, auto


class InputType(Enum):
    SPOTIFY_TRACK = auto()
    SEARCH_QUERY = auto()


_SPOTIFY_TRACK_RE = re.compile(
    r"(?:https?://)?open\.spotify\.com/(?:intl-[a-z]{2}(?:-[a-z]{2})?/)?track/([A-Za-z0-9]+)"
)


def classify(query: str) -> tuple[InputType, str]:
    """Return (InputType, cleaned_value) for a user query.

    For Spotify track URLs the cleaned value is the track ID (query string
    dropped). Anything else is treated as search text and returned stripped.
    """
    query = query.strip()

    m = _SPOTIFY_TRACK_RE.search(query)
    if m:
        return InputType.SPOTIFY_TRACK, m.group(1)

    return InputType.SEARCH_QUERY, query
