"""Test handoff link construction and the system opener"""

from unittest.mock import patch

import pytest

from melomo.handoff.links import ProviderLinkBuilder, apple_music_search_url
from melomo.handoff.opener import SystemURLOpener
from melomo.moods.models import Mood, MoodCategory, PlaylistLink, Provider


class TestProviderLinkBuilder:
    """Test deep links for Spotify and YouTube Music"""

    def test_spotify_deep_link(self, happy_mood):
        link = ProviderLinkBuilder().build(Provider.SPOTIFY, happy_mood)

        assert link == PlaylistLink(
            Provider.SPOTIFY,
            "spotify://search/feel%20good%20pop%20uplifting%20Happy%20playlist",
        )

    def test_youtube_music_deep_link(self, happy_mood):
        link = ProviderLinkBuilder().build(Provider.YOUTUBE_MUSIC, happy_mood)

        assert link.provider == Provider.YOUTUBE_MUSIC
        assert link.url == "youtubemusic://search/feel%20good%20pop%20uplifting%20Happy%20music"

    def test_deterministic(self, happy_mood):
        builder = ProviderLinkBuilder()
        assert builder.build(Provider.SPOTIFY, happy_mood) == builder.build(Provider.SPOTIFY, happy_mood)

    def test_query_allowed_characters_stay_literal(self):
        mood = Mood(id="rnb", emoji="x", title="R&B", seeds=["90s r&b", "alt-pop"], category=MoodCategory.SOCIAL)

        link = ProviderLinkBuilder().build(Provider.SPOTIFY, mood)

        assert link.url == "spotify://search/90s%20r&b%20alt-pop%20R&B%20playlist"

    def test_non_ascii_is_utf8_encoded(self):
        mood = Mood(id="cafe", emoji="x", title="Café", seeds=[])

        link = ProviderLinkBuilder().build(Provider.YOUTUBE_MUSIC, mood)

        assert link.url == "youtubemusic://search/Caf%C3%A9%20music"

    def test_candidate_order(self, happy_mood):
        candidates = ProviderLinkBuilder().candidates(Provider.YOUTUBE_MUSIC, happy_mood)

        assert candidates == [
            "youtubemusic://search/feel%20good%20pop%20uplifting%20Happy%20music",
            "https://music.youtube.com/search?q=feel%20good%20pop%20uplifting%20Happy%20music",
            "https://music.youtube.com",
        ]

    def test_unencodable_query_falls_back_to_title(self):
        mood = Mood(id="odd", emoji="x", title="Odd", seeds=["bad \udc80 seed"])

        link = ProviderLinkBuilder().build(Provider.SPOTIFY, mood)

        assert link.url == "spotify://search/Odd"

    def test_invalid_deep_link_falls_back_to_web(self, happy_mood):
        builder = ProviderLinkBuilder()
        with patch("melomo.handoff.links.is_valid_url", side_effect=lambda url: url.startswith("https://")):
            link = builder.build(Provider.SPOTIFY, happy_mood)

        assert link.url == "https://open.spotify.com/search/feel%20good%20pop%20uplifting%20Happy%20playlist"

    def test_home_url_is_last_resort(self, happy_mood):
        with patch("melomo.handoff.links.is_valid_url", return_value=False):
            link = ProviderLinkBuilder().build(Provider.YOUTUBE_MUSIC, happy_mood)

        assert link.url == "https://music.youtube.com"

    def test_apple_music_link(self, happy_mood):
        link = ProviderLinkBuilder().build(Provider.APPLE_MUSIC, happy_mood)

        assert link.provider == Provider.APPLE_MUSIC
        assert link.url == "https://music.apple.com/search?term=feel%20good%20OR%20pop%20uplifting"

    def test_apple_music_link_without_seeds(self):
        mood = Mood(id="x", emoji="x", title="Quiet Time", seeds=[])
        assert apple_music_search_url(mood) == "https://music.apple.com/search?term=Quiet%20Time"


@pytest.mark.asyncio
class TestSystemURLOpener:
    """Test URL opening decisions"""

    async def test_web_urls_always_openable(self):
        opener = SystemURLOpener(handler="")
        assert await opener.can_open("https://music.youtube.com/search?q=x")

    async def test_custom_scheme_needs_handler(self):
        assert not await SystemURLOpener(handler="").can_open("youtubemusic://search/x")
        assert await SystemURLOpener(handler="/usr/bin/xdg-open").can_open("youtubemusic://search/x")

    async def test_invalid_url(self):
        assert not await SystemURLOpener(handler="/usr/bin/xdg-open").can_open("not a url")

    async def test_open_web_url_uses_browser(self):
        with patch("melomo.handoff.opener.webbrowser.open", return_value=True) as mock_open:
            await SystemURLOpener(handler="").open("https://music.youtube.com")

        mock_open.assert_called_once_with("https://music.youtube.com")

    async def test_open_app_link_uses_handler(self):
        with patch("melomo.handoff.opener.subprocess.run") as mock_run:
            await SystemURLOpener(handler="/usr/bin/xdg-open").open("youtubemusic://search/x")

        mock_run.assert_called_once_with(["/usr/bin/xdg-open", "youtubemusic://search/x"], check=True)

    async def test_open_app_link_without_handler(self):
        with pytest.raises(RuntimeError):
            await SystemURLOpener(handler="").open("youtubemusic://search/x")
