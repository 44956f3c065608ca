"""Connection and open-media state models."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ConnectionState:
    """Connectivity to the current Kodi host.

    Attributes:
        is_connected: Connected via WebSocket, or reachable via HTTP.
        is_ws_connected: Connected via WebSocket.
    """

    is_connected: bool = False
    is_ws_connected: bool = False


@dataclass(frozen=True, slots=True)
class OpenMedia:
    """What is currently open on Kodi, for display by the UI.

    Attributes:
        movie_trakt_id: Trakt ID of the movie, if a movie.
        show_trakt_id: Trakt ID of the show, if an episode.
        season_number: Season of the episode.
        episode_number: Episode number.
        video_url: URL that was opened.
        next_video_urls: URLs queued after this one.
    """

    movie_trakt_id: int | None = None
    show_trakt_id: int | None = None
    season_number: int | None = None
    episode_number: int | None = None
    video_url: str | None = None
    next_video_urls: tuple[str, ...] = ()

    @property
    def is_episode(self) -> bool:
        """Return True if this describes a show episode."""
        return self.show_trakt_id is not None
