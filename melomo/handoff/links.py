"""
Deep-link construction for handoff providers

Spotify and YouTube Music are not searched directly. Instead a search link
is built from the mood and handed to the provider's app (or its website).
Construction is pure and deterministic: the same mood and provider always
produce the same URL, and no network call is made.

Each provider has three candidates, tried in order:

1. app deep link   (``spotify://search/<q>``)
2. web search URL  (``https://open.spotify.com/search/<q>``)
3. home page       (``https://open.spotify.com``)

The first candidate that is a well-formed URL wins, so building a link
never fails.
"""

from typing import Dict, List, NamedTuple

from ..applemusic.searcher import build_seed_query
from ..moods.models import Mood, PlaylistLink, Provider
from ..utils.helpers import encode_query_component, is_valid_url
from ..utils.logger import get_logger

logger = get_logger(__name__)

APPLE_MUSIC_SEARCH_URL = "https://music.apple.com/search?term={query}"


class LinkTemplate(NamedTuple):
    keyword: str
    deep_link: str
    web_search: str
    home: str


LINK_TEMPLATES: Dict[Provider, LinkTemplate] = {
    Provider.SPOTIFY: LinkTemplate(
        keyword="playlist",
        deep_link="spotify://search/{query}",
        web_search="https://open.spotify.com/search/{query}",
        home="https://open.spotify.com",
    ),
    Provider.YOUTUBE_MUSIC: LinkTemplate(
        keyword="music",
        deep_link="youtubemusic://search/{query}",
        web_search="https://music.youtube.com/search?q={query}",
        home="https://music.youtube.com",
    ),
}


def _encode(text: str, fallback: str) -> str:
    try:
        return encode_query_component(text)
    except UnicodeEncodeError as e:
        logger.warning(f"Could not encode search query, using mood title: {e}")
        return fallback


def apple_music_search_url(mood: Mood) -> str:
    """
    Shareable Apple Music catalog search URL for a mood

    Uses the same disjunctive seed query as the first search strategy; moods
    without seeds fall back to their title.
    """
    query = build_seed_query(mood) or mood.title
    return APPLE_MUSIC_SEARCH_URL.format(query=_encode(query, mood.title))


class ProviderLinkBuilder:
    """Builds provider-tagged playlist links for moods"""

    def build_query(self, provider: Provider, mood: Mood) -> str:
        """Seeds, title and the provider keyword joined by single spaces"""
        template = LINK_TEMPLATES[provider]
        return " ".join(list(mood.seeds) + [mood.title, template.keyword])

    def candidates(self, provider: Provider, mood: Mood) -> List[str]:
        """
        Candidate URLs for a handoff provider, most specific first

        Raises:
            KeyError: For a provider without handoff templates (Apple Music)
        """
        template = LINK_TEMPLATES[provider]
        encoded = _encode(self.build_query(provider, mood), mood.title)
        return [
            template.deep_link.format(query=encoded),
            template.web_search.format(query=encoded),
            template.home,
        ]

    def build(self, provider: Provider, mood: Mood) -> PlaylistLink:
        """
        Build the playlist link for a mood

        Args:
            provider: Target provider
            mood: Mood to build the link for

        Returns:
            PlaylistLink tagged with the provider
        """
        if provider == Provider.APPLE_MUSIC:
            return PlaylistLink(provider, apple_music_search_url(mood))

        candidates = self.candidates(provider, mood)
        for url in candidates:
            if is_valid_url(url):
                return PlaylistLink(provider, url)
            logger.debug(f"Rejected {provider.value} link candidate: {url!r}")

        # Home URLs are constants and always valid
        return PlaylistLink(provider, candidates[-1])
