"""
Configuration package for MeloMo

Settings are loaded from YAML files and environment variables and shared
through a lazily created global instance:

    from melomo.config import get_settings
    settings = get_settings()

Apple Music credentials live in ``melomo.config.auth`` and are imported from
there directly.
"""

from .settings import get_settings, reload_settings, Settings

__all__ = [
    'get_settings',
    'reload_settings',
    'Settings'
]
