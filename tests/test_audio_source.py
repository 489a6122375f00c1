from unittest.mock import MagicMock, patch

import pytest

from music.audio_source import SearchHit, YTDLSource, _is_video_entry, format_duration


class TestIsVideoEntry:
    @pytest.mark.parametrize("entry,url", [
        ({"_type": "url"}, "https://www.youtube.com/watch?v=abc"),
        ({}, "https://youtu.be/abc"),
        ({"_type": "video", "live_status": "not_live"}, "https://www.youtube.com/watch?v=abc"),
    ])
    def test_playable(self, entry, url):
        assert _is_video_entry(entry, url)

    @pytest.mark.parametrize("entry,url", [
        ({"_type": "playlist"}, "https://www.youtube.com/playlist?list=PL1"),
        ({"_type": "url"}, "https://www.youtube.com/@somechannel"),
        ({"_type": "url", "live_status": "is_live"}, "https://www.youtube.com/watch?v=live"),
        ({"is_live": True}, "https://www.youtube.com/watch?v=live"),
    ])
    def test_not_playable(self, entry, url):
        assert not _is_video_entry(entry, url)


@pytest.mark.parametrize("seconds,expected", [(0, "?:??"), (-5, "?:??"), (65, "1:05"), (3600, "1:00:00")])
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


class TestSearch:
    @pytest.mark.asyncio
    async def test_hits_keep_result_order(self):
        ytdl = MagicMock()
        ytdl.extract_info.return_value = {"entries": [
            {"_type": "url", "title": "A channel", "url": "https://www.youtube.com/@chan"},
            None,
            {"_type": "url", "title": "Song", "url": "https://www.youtube.com/watch?v=s", "duration": 201.0},
        ]}

        with patch("music.audio_source.yt_dlp.YoutubeDL", return_value=ytdl):
            hits = await YTDLSource.search("song", limit=3)

        ytdl.extract_info.assert_called_once_with("ytsearch3:song", download=False)
        assert hits == [
            SearchHit(title="A channel", url="https://www.youtube.com/@chan", is_playable=False),
            SearchHit(title="Song", url="https://www.youtube.com/watch?v=s", is_playable=True, duration=201),
        ]

    @pytest.mark.asyncio
    async def test_no_results(self):
        ytdl = MagicMock()
        ytdl.extract_info.return_value = None

        with patch("music.audio_source.yt_dlp.YoutubeDL", return_value=ytdl):
            assert await YTDLSource.search("nothing") == []
