"""
MeloMo: mood-based music discovery

Pick a mood and MeloMo turns it into music. With Apple Music it searches the
catalog using the mood's keywords, shuffles the results into a queue and
starts playback. With Spotify or YouTube Music it builds a search deep link
and hands off to the provider's app.

## Package layout

**Moods (`melomo/moods/`)**
- Data models shared by every layer (Mood, Provider, PlaylistLink, ...)
- The bundled, read-only mood catalog and its queries

**Apple Music (`melomo/applemusic/`)**
- Catalog search client (aiohttp, throttled)
- Three-strategy mood search with fallbacks
- Playback queue builder and the in-process player

**Handoff (`melomo/handoff/`)**
- Deterministic deep-link construction for Spotify and YouTube Music
- Opening links in the browser or the provider app

**Controller (`melomo/controller/`)**
- MusicController, the generation orchestrator
- Collaborator interfaces, state persistence and feedback signals

**Configuration and utilities (`melomo/config/`, `melomo/utils/`)**
- YAML + environment settings, Apple Music tokens
- Logging, exceptions and small helpers

The command line lives in `melomo/main.py` and is installed as `melomo`.
"""

__version__ = "1.0.0"

__author__ = "MeloMo Team"

__description__ = "Mood-based playlist generation for Apple Music, Spotify and YouTube Music"

__all__ = [
    "__version__",
    "__author__",
    "__description__"
]
