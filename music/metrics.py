"""Prometheus metric definitions for tunequeue."""
from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram, start_http_server

tracks_played_total = Counter(
    "tunequeue_tracks_played_total",
    "Total tracks started across all guilds",
)
playback_errors_total = Counter(
    "tunequeue_playback_errors_total",
    "Total stream acquisition or play failures",
)
queue_size = Gauge(
    "tunequeue_queue_size",
    "Tracks waiting in a guild's queue",
    ["guild_id"],
)
active_sessions = Gauge(
    "tunequeue_active_sessions",
    "Number of guilds with a live playback session",
)
voice_connections = Gauge(
    "tunequeue_voice_connections",
    "Number of open voice connections",
)
resolve_seconds = Histogram(
    "tunequeue_resolve_seconds",
    "Time to resolve a query to a playable track",
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
)


def start_metrics_server(port: int = 9090) -> None:
    start_http_server(port)


def forget_guild(guild_id: int) -> None:
    """Drop a guild's labelled series once its session is gone."""
    try:
        queue_size.remove(str(guild_id))
    except KeyError:
        pass
