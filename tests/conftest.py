import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from music.audio_source import Track
from music.errors import TransportUnavailable
from music.registry import SessionRegistry
from music.transport import VoiceHandle, VoiceTransport

# ============================================================================
# Transport / stream fakes
# ============================================================================


class FakeHandle(VoiceHandle):
    """In-memory voice handle. Idle callbacks are delivered via call_soon,
    like the real one hands them over from the audio thread."""

    def __init__(self, voice_channel):
        self.voice_channel = voice_channel
        self.callback = None
        self.playing = None
        self.paused = False
        self.played = []
        self.stops = 0
        self.disconnects = 0
        self.fail_play = False
        self.disconnect_gate: asyncio.Event | None = None
        self.disconnect_error: Exception | None = None

    def on_idle(self, callback):
        self.callback = callback

    def play(self, source):
        if self.fail_play:
            raise RuntimeError("player refused source")
        self.playing = source
        self.paused = False
        self.played.append(source)

    def pause(self):
        if self.playing is not None:
            self.paused = True

    def resume(self):
        self.paused = False

    def _go_idle(self):
        if self.playing is None:
            return
        self.playing = None
        self.paused = False
        asyncio.get_running_loop().call_soon(self.callback, None)

    def stop(self):
        self.stops += 1
        self._go_idle()

    def finish(self):
        """The current source ran out."""
        self._go_idle()

    def is_paused(self):
        return self.paused

    async def disconnect(self):
        if self.disconnect_gate is not None:
            await self.disconnect_gate.wait()
        self.disconnects += 1
        if self.disconnect_error is not None:
            raise self.disconnect_error


class FakeTransport(VoiceTransport):
    def __init__(self):
        self.handles: list[FakeHandle] = []
        self.unavailable = False
        self.gates: dict[int, asyncio.Event] = {}

    @property
    def connects(self):
        return len(self.handles)

    async def connect(self, voice_channel):
        gate = self.gates.get(voice_channel.id)
        if gate is not None:
            await gate.wait()
        if self.unavailable:
            raise TransportUnavailable("voice gateway unreachable")
        handle = FakeHandle(voice_channel)
        self.handles.append(handle)
        return handle


class FakeStreams:
    def __init__(self):
        self.failing: set[str] = set()
        self.opened: list[str] = []
        self.gates: dict[str, asyncio.Event] = {}

    async def open(self, url):
        self.opened.append(url)
        gate = self.gates.get(url)
        if gate is not None:
            await gate.wait()
        if url in self.failing:
            raise RuntimeError(f"stream unavailable: {url}")
        return f"source:{url}"


async def settle(registry):
    """Let pending idle callbacks fire and their advancements finish."""
    for _ in range(3):
        await asyncio.sleep(0)
    await registry.advancer.join()


def make_track(n, title=None):
    return Track(title=title or f"Track {n}", url=f"https://youtube.com/watch?v=t{n}")


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def streams():
    return FakeStreams()


@pytest_asyncio.fixture
async def registry(transport, streams):
    reg = SessionRegistry(transport, streams.open, max_playback_failures=3)
    yield reg
    await reg.close()


@pytest.fixture
def voice_channel():
    channel = MagicMock()
    channel.id = 1001
    return channel


@pytest.fixture
def reply_channel():
    channel = MagicMock()
    channel.send = AsyncMock()
    return channel


@pytest.fixture
def tracks():
    return [make_track(i) for i in range(5)]
