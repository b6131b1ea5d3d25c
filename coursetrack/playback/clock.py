"""Playback clock: the single readout of "where is the video now".

The embedded player is polled on a fixed tick instead of trusting its
own events, and the last sample is cached.  Everything else (the
chapter resolver, the progress persister, the notes drawer) reads the
cache through ``get_current_time`` and moves the player only through
``seek_to``, so there is exactly one source of elapsed time.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from coursetrack.core.config import SETTINGS
from coursetrack.playback.tasks import Interval

logger = logging.getLogger(__name__)


class PlayerAdapter(Protocol):
    """What the clock needs from an embedded player."""

    def get_current_time(self) -> float: ...
    def seek_to(self, seconds: float) -> None: ...
    def play(self) -> None: ...


class PlayerState(str, Enum):
    UNSTARTED = "unstarted"
    PLAYING = "playing"
    PAUSED = "paused"
    BUFFERING = "buffering"
    ENDED = "ended"


@dataclass(slots=True)
class PlaybackSession:
    """Per-video playback state; replaced whenever another video loads."""

    video_ref: str
    elapsed_seconds: float = 0.0
    is_playing: bool = False


def format_timestamp(seconds: float) -> str:
    """``M:SS`` below an hour, ``H:MM:SS`` from there on."""
    total = max(0, math.floor(seconds)) if math.isfinite(seconds) else 0
    h, rem = divmod(total, 3600)
    m, s = divmod(rem, 60)
    if h > 0:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m}:{s:02d}"


class PlaybackClock:
    def __init__(
        self,
        *,
        persist: Callable[[str], object] | None = None,
        tick_seconds: float = SETTINGS.clock_tick_seconds,
        persist_interval_seconds: float = SETTINGS.persist_interval_seconds,
    ) -> None:
        self._player: PlayerAdapter | None = None
        self._session: PlaybackSession | None = None
        self._persist = persist
        self._listeners: list[Callable[[float], None]] = []
        self._sampler = Interval(tick_seconds, self.sample, name="clock")
        self._persist_tick = Interval(
            persist_interval_seconds,
            lambda: self._request_persist("interval"),
            name="persist",
        )

    @property
    def session(self) -> PlaybackSession | None:
        return self._session

    @property
    def is_ready(self) -> bool:
        return self._player is not None

    @property
    def is_persisting(self) -> bool:
        return self._persist_tick.running

    def add_listener(self, listener: Callable[[float], None]) -> Callable[[], None]:
        """Call ``listener(t)`` after every sample and seek."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    # -- lifecycle -----------------------------------------------------------

    def start(self) -> None:
        """Begin polling.  Needs a running event loop."""
        self._sampler.start()

    def load(self, video_ref: str) -> PlaybackSession:
        """Start a fresh session for ``video_ref``.

        The previous player belongs to the previous video and is dropped;
        until the new one is attached, reads return 0.
        """
        self._persist_tick.cancel()
        self._player = None
        self._session = PlaybackSession(video_ref=video_ref)
        return self._session

    def attach(self, player: PlayerAdapter) -> None:
        self._player = player
        logger.debug(
            "Player attached",
            extra={"video_id": self._session.video_ref if self._session else None},
        )

    def close(self) -> None:
        """Stop both ticks and flush the position once."""
        self._sampler.cancel()
        self._persist_tick.cancel()
        if self._session is not None:
            self._session.is_playing = False
        self._request_persist("teardown")

    # -- reads ---------------------------------------------------------------

    def get_current_time(self) -> float:
        if self._session is None:
            return 0.0
        return self._session.elapsed_seconds

    def sample(self) -> float:
        """Read the player into the cache and notify listeners."""
        t = self._read_player()
        if self._session is not None:
            self._session.elapsed_seconds = t
        self._notify(t)
        return t

    def _read_player(self) -> float:
        if self._player is None:
            return 0.0
        t = self._player.get_current_time()
        if t is None or not math.isfinite(t):
            return 0.0
        return float(t)

    # -- commands ------------------------------------------------------------

    def seek_to(self, seconds: float) -> None:
        """Jump and resume playback.  No-op until a player is attached.

        The cache moves before the player confirms so that chapter
        highlighting follows the click, not the next tick.
        """
        if self._player is None:
            return
        self._player.seek_to(seconds)
        self._player.play()
        self._set_time(seconds)

    def cue(self, seconds: float) -> None:
        """Position the player without starting playback (resume point)."""
        if self._player is None or seconds <= 0:
            return
        self._player.seek_to(seconds)
        self._set_time(seconds)

    def on_state_change(self, state: PlayerState) -> None:
        if self._session is None:
            return
        if state is PlayerState.PLAYING:
            self._session.is_playing = True
            self._persist_tick.start()
        elif state in (PlayerState.PAUSED, PlayerState.ENDED):
            self._session.is_playing = False
            self._persist_tick.cancel()
            self.sample()
            self._request_persist("pause")

    # -- internals -----------------------------------------------------------

    def _set_time(self, seconds: float) -> None:
        if self._session is not None:
            self._session.elapsed_seconds = seconds
        self._notify(seconds)

    def _notify(self, t: float) -> None:
        for listener in list(self._listeners):
            listener(t)

    def _request_persist(self, reason: str) -> None:
        if self._persist is not None:
            self._persist(reason)
