from __future__ import annotations

import logging
from dataclasses import dataclass

import spotipy
from spotipy.oauth2 import SpotifyClientCredentials

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogItem:
    artists: tuple[str, ...]
    name: str

    @property
    def search_title(self) -> str:
        """'<primary artist> - <name>', the string used to find audio."""
        if not self.artists:
            return self.name
        return f"{self.artists[0]} - {self.name}"


class SpotifyResolver:
    """Looks up Spotify track metadata.

    The client-credentials token is fetched lazily on the first lookup and
    refreshed by spotipy when it expires.
    """

    def __init__(self, client_id: str | None, client_secret: str | None) -> None:
        if not client_id or not client_secret:
            log.warning("Spotify credentials not set; Spotify links will not work.")
            self._sp = None
            return

        auth = SpotifyClientCredentials(
            client_id=client_id, client_secret=client_secret
        )
        self._sp = spotipy.Spotify(auth_manager=auth)

    @property
    def available(self) -> bool:
        return self._sp is not None

    def lookup_track(self, track_id: str) -> CatalogItem:
        """Blocking; run it in an executor."""
        if not self._sp:
            raise RuntimeError("Spotify credentials are not configured")
        track = self._sp.track(track_id)
        return CatalogItem(
            artists=tuple(a["name"] for a in track.get("artists", [])),
            name=track["name"],
        )
