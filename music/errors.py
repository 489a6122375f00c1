from __future__ import annotations


class MusicError(Exception):
    """Base class for everything the music core raises."""


class TransportUnavailable(MusicError):
    """The voice connection for a new session could not be opened."""


class ResolutionError(MusicError):
    """A user query could not be turned into a playable track."""

    def __init__(self, query: str, reason: str = "") -> None:
        self.query = query
        self.reason = reason
        super().__init__(f"{reason or 'unresolvable'}: {query!r}")


class NoPlayableResultFound(ResolutionError):
    pass


class MetadataLookupFailed(ResolutionError):
    pass


class EmptySessionOperation(MusicError):
    """A session command was issued for a guild with no active session."""

    def __init__(self, guild_id: int) -> None:
        self.guild_id = guild_id
        super().__init__(f"no active session for guild {guild_id}")


class SessionClosed(MusicError):
    """The session was torn down before the operation could apply."""
