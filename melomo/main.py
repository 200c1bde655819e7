"""
Main CLI interface for MeloMo

This module provides the command-line front end for mood-based playlist
generation. It builds a MusicController wired to the real collaborators
(Apple Music client, in-process player, system URL opener, file-backed
state) and exposes its operations as Click commands:

- Discovery (moods, generate, random)
- Personal state (favorite, favorites, recent, stats, provider)
- Apple Music authorization (auth login, logout, status)
- Configuration management (config show, set)
- System diagnostics (doctor)
"""

import asyncio
import functools
import sys
from typing import List, Optional

import click

from . import __version__
from .applemusic.client import AppleMusicClient
from .applemusic.player import QueuePlayer
from .config.auth import AppleMusicAuth, get_auth, reset_auth
from .config.settings import get_settings, reload_settings
from .controller.feedback import Feedback
from .controller.music_controller import MusicController
from .controller.persistence import FileKeyValueStore
from .handoff.opener import SystemURLOpener
from .moods.catalog import get_catalog, load_catalog
from .moods.models import AuthorizationStatus, Mood, MoodCategory, Provider
from .utils.helpers import format_duration, format_timestamp, truncate_string
from .utils.logger import configure_from_settings, get_current_log_file, get_logger

logger = get_logger(__name__)

PROVIDER_CHOICES = ['apple-music', 'spotify', 'youtube-music']


def print_banner():
    """Print application banner to console"""
    banner = """
╔═══════════════════════════════════════════════════════════════╗
║                            MeloMo                             ║
║                                                               ║
║        Pick a mood, get a playlist. Apple Music, Spotify      ║
║                     and YouTube Music.                        ║
╚═══════════════════════════════════════════════════════════════╝
    """
    click.echo(click.style(banner, fg='magenta', bold=True))


def handle_error(func):
    """
    Decorator to handle common CLI errors gracefully

    Args:
        func: The CLI command function to wrap

    Returns:
        Wrapped function with error handling
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            click.echo(click.style("\n\nOperation cancelled by user", fg='yellow'))
            sys.exit(130)
        except Exception as e:
            logger.error(f"Command failed: {e}")
            click.echo(click.style(f"Error: {e}", fg='red'), err=True)
            sys.exit(1)
    return wrapper


def _prompt_user_token() -> Optional[str]:
    click.echo("Apple Music needs a music user token to play songs.")
    return click.prompt("Music user token (leave empty to skip)", default="", show_default=False, hide_input=True)


def build_controller() -> MusicController:
    """Create a controller wired to the real collaborators"""
    settings = get_settings()
    auth = get_auth()
    if auth.token_prompt is None:
        auth.token_prompt = _prompt_user_token

    return MusicController(
        search=AppleMusicClient(settings=settings, auth=auth),
        player=QueuePlayer(),
        authorization=auth,
        opener=SystemURLOpener(),
        store=FileKeyValueStore(settings.get_storage_directory()),
        settings=settings,
    )


async def _run_generation(controller: MusicController, mood: Mood) -> None:
    try:
        if controller.provider == Provider.APPLE_MUSIC:
            await controller.refresh_authorization_status()
        await controller.generate(mood)
    finally:
        close = getattr(controller.searcher.backend, 'close', None)
        if close is not None:
            await close()


def _generate(controller: MusicController, mood: Mood) -> None:
    """Run one generation and report the outcome"""
    signals: List[Feedback] = []
    controller.add_feedback_listener(signals.append)

    click.echo(f"{mood.emoji} Generating a {mood.title} playlist with {controller.provider.value}...")
    asyncio.run(_run_generation(controller, mood))

    state = controller.state
    if state.error_message:
        click.echo(click.style(state.error_message, fg='red'), err=True)
        sys.exit(1)

    track = controller.current_playing_track()
    if track:
        click.echo(f"Now playing: {track.title} - {track.artist} ({format_duration(track.duration)})")

    if state.status_message:
        click.echo(click.style(state.status_message, fg='green'))

    if controller.provider == Provider.YOUTUBE_MUSIC and Feedback.WARNING in signals:
        click.echo(click.style("Could not open YouTube Music automatically, use the link below.", fg='yellow'))

    if state.last_generated_link:
        click.echo(f"Link: {state.last_generated_link.url}")


def _format_mood(mood: Mood, controller: Optional[MusicController] = None) -> str:
    favorite = " ♥" if controller is not None and controller.is_favorite(mood) else ""
    return (
        f"{mood.emoji} {mood.title:<12} {mood.category.value:<10} "
        f"energy {mood.energy:.1f}  popularity {mood.popularity}  "
        f"{truncate_string(mood.description, 40)}{favorite}"
    )


# Main CLI group - root command that all subcommands attach to
@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--config', type=click.Path(), help='Path to config file')
@click.pass_context
def cli(ctx, version, verbose, config):
    """
    MeloMo - mood-based playlists

    Pick a mood and MeloMo starts a matching Apple Music queue, or hands
    off to Spotify or YouTube Music with a ready-made search.
    """
    ctx.ensure_object(dict)

    if version:
        click.echo(f"MeloMo v{__version__}")
        return

    if config:
        reload_settings(config)
        reset_auth()

    configure_from_settings()

    if verbose:
        ctx.obj['verbose'] = True
        logger.info("Verbose mode enabled")

    if ctx.invoked_subcommand is None:
        print_banner()
        click.echo(ctx.get_help())


@cli.command()
@click.option('--category', '-c', help='Only moods in this category (e.g. Energetic)')
@click.option('--popular', is_flag=True, help='Only popular moods')
@handle_error
def moods(category, popular):
    """List available moods"""
    catalog = get_catalog()
    settings = get_settings()

    selected = catalog.moods
    if category:
        try:
            wanted = MoodCategory.from_name(category)
        except ValueError:
            names = ', '.join(c.value for c in catalog.categories())
            raise click.BadParameter(f"unknown category '{category}'. Available: {names}", param_hint='--category')
        selected = [m for m in selected if m.category == wanted]
    if popular:
        threshold = settings.generation.popular_threshold
        selected = [m for m in selected if m.popularity >= threshold]

    if not selected:
        click.echo("No moods match")
        return

    for mood in selected:
        click.echo(_format_mood(mood))


@cli.command()
@click.argument('mood')
@click.option('--provider', '-p', type=click.Choice(PROVIDER_CHOICES), help='Switch provider before generating')
@handle_error
def generate(mood, provider):
    """Generate a playlist for MOOD (id or title)"""
    selected = get_catalog().find(mood)
    controller = build_controller()

    if provider:
        controller.set_provider(Provider.from_name(provider))

    _generate(controller, selected)


@cli.command(name='random')
@handle_error
def random_mood():
    """Generate a playlist for a mood you haven't used lately"""
    controller = build_controller()
    mood = controller.get_random_mood()
    if mood is None:
        click.echo("The mood catalog is empty")
        sys.exit(1)

    _generate(controller, mood)


@cli.command()
@click.argument('mood')
@handle_error
def favorite(mood):
    """Add MOOD to favorites, or remove it"""
    selected = get_catalog().find(mood)
    controller = build_controller()

    if controller.toggle_favorite(selected):
        click.echo(f"{selected.emoji} {selected.title} added to favorites")
    else:
        click.echo(f"{selected.emoji} {selected.title} removed from favorites")


@cli.command()
@handle_error
def favorites():
    """Show favorite moods"""
    controller = build_controller()
    if not controller.favorite_moods:
        click.echo("No favorite moods yet. Add one with 'melomo favorite <mood>'")
        return

    for mood in controller.favorite_moods:
        click.echo(_format_mood(mood))


@cli.command()
@handle_error
def recent():
    """Show recently used moods, most recent first"""
    controller = build_controller()
    if not controller.recent_moods:
        click.echo("No moods used yet")
        return

    for index, mood in enumerate(controller.recent_moods, 1):
        click.echo(f"{index:>2}. {_format_mood(mood, controller)}")


@cli.command()
@handle_error
def stats():
    """Show usage statistics"""
    controller = build_controller()
    statistics = controller.statistics

    click.echo("Statistics:")
    click.echo(f"   Playlists generated: {statistics.total_playlists_generated}")
    click.echo(f"   Most used provider: {statistics.most_used_provider.value}")
    click.echo(f"   Last used: {format_timestamp(statistics.last_used_date)}")
    if statistics.favorite_mood:
        click.echo(f"   Favorite mood: {statistics.favorite_mood.title}")
    click.echo(f"   Favorites: {len(controller.favorite_moods)}")
    click.echo(f"   Recent moods: {len(controller.recent_moods)}")


@cli.command()
@click.argument('name', required=False, type=click.Choice(PROVIDER_CHOICES))
@handle_error
def provider(name):
    """Show or set the active music provider"""
    controller = build_controller()

    if not name:
        click.echo(f"Active provider: {controller.provider.value}")
        return

    controller.set_provider(Provider.from_name(name))
    click.echo(f"Active provider set to {controller.provider.value}")


# Authentication commands group
@cli.group()
def auth():
    """Apple Music authorization"""
    pass


@auth.command()
@click.option('--token', help='Music user token (prompted when omitted)')
@handle_error
def login(token):
    """Store an Apple Music user token"""
    auth_manager = get_auth()

    if not auth_manager.developer_token:
        click.echo("Apple Music developer token is not configured")
        click.echo("   Set APPLE_MUSIC_DEVELOPER_TOKEN or apple_music.developer_token in config.yaml")
        sys.exit(1)

    if auth_manager.current_status() == AuthorizationStatus.AUTHORIZED and not token:
        click.echo("Already authorized for Apple Music")
        return

    if not token:
        token = _prompt_user_token()

    if not token or not token.strip():
        click.echo("No token entered, authorization skipped")
        sys.exit(1)

    auth_manager.login(token.strip())
    click.echo("Apple Music authorization saved")


@auth.command()
@handle_error
def logout():
    """Remove the stored Apple Music user token"""
    auth_manager = get_auth()
    auth_manager.revoke_token()
    reset_auth()
    click.echo("Successfully logged out")


@auth.command()
@handle_error
def status():
    """Show Apple Music authorization status"""
    auth_manager: AppleMusicAuth = get_auth()
    info = auth_manager.get_token_info()

    status_value = auth_manager.current_status()
    if status_value == AuthorizationStatus.AUTHORIZED:
        click.echo("Authorization Status: Authorized")
        click.echo(f"   User token source: {info['user_token_source']}")
        if info['saved_at']:
            click.echo(f"   Saved: {format_timestamp(info['saved_at'])}")
    elif status_value == AuthorizationStatus.NOT_DETERMINED:
        click.echo("Authorization Status: Not determined")
        click.echo("   Run 'melomo auth login' to authorize")
    else:
        click.echo("Authorization Status: Denied")
        click.echo("   Apple Music developer token is not configured")


# Configuration commands group
@cli.group()
def config():
    """Configuration management"""
    pass


@config.command()
@handle_error
def show():
    """Show current configuration"""
    settings = get_settings()

    click.echo("Current Configuration:\n")

    click.echo("Apple Music:")
    click.echo(f"   Developer token: {'set' if settings.apple_music.developer_token else 'not set'}")
    click.echo(f"   Storefront: {settings.apple_music.storefront}")
    click.echo(f"   Search limit: {settings.apple_music.search_limit}")
    click.echo(f"   Requests per second: {settings.apple_music.requests_per_second}")

    click.echo("\nGeneration:")
    click.echo(f"   Cooldown: {settings.generation.cooldown_seconds}s")
    click.echo(f"   Recent moods kept: {settings.generation.recent_moods_limit}")
    click.echo(f"   Popular threshold: {settings.generation.popular_threshold}")
    click.echo(f"   Auto-open handoff: {settings.generation.auto_open_handoff}")

    click.echo("\nStorage:")
    click.echo(f"   State directory: {settings.get_storage_directory()}")
    click.echo(f"   Token file: {settings.get_token_storage_path()}")

    click.echo("\nLogging:")
    click.echo(f"   Level: {settings.logging.level}")
    click.echo(f"   File: {settings.logging.file or 'disabled'}")


@config.command(name='set')
@click.option('--storefront', help='Set Apple Music storefront (e.g. us, gb, it)')
@click.option('--cooldown', type=float, help='Set seconds between generations')
@click.option('--recent-limit', type=int, help='Set how many recent moods are kept')
@click.option('--auto-open/--no-auto-open', default=None, help='Open YouTube Music automatically')
@click.option('--log-level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']), help='Set log level')
@handle_error
def set_config(storefront, cooldown, recent_limit, auto_open, log_level):
    """Update configuration settings"""
    settings = get_settings()
    changes = []

    if storefront:
        settings.apple_music.storefront = storefront.lower()
        changes.append(f"Storefront: {settings.apple_music.storefront}")

    if cooldown is not None:
        settings.generation.cooldown_seconds = cooldown
        changes.append(f"Cooldown: {cooldown}s")

    if recent_limit is not None:
        settings.generation.recent_moods_limit = recent_limit
        changes.append(f"Recent moods kept: {recent_limit}")

    if auto_open is not None:
        settings.generation.auto_open_handoff = auto_open
        changes.append(f"Auto-open handoff: {auto_open}")

    if log_level:
        settings.logging.level = log_level
        changes.append(f"Log level: {log_level}")

    if not changes:
        click.echo("No changes specified")
        return

    errors = settings.validate()
    if errors:
        for error in errors:
            click.echo(click.style(f"   • {error}", fg='red'), err=True)
        sys.exit(1)

    path = settings.save_config()
    click.echo(f"Configuration updated ({path}):")
    for change in changes:
        click.echo(f"   • {change}")


# System diagnostic commands
@cli.command()
@handle_error
def doctor():
    """Run system diagnostics"""
    click.echo("Running diagnostics...\n")

    issues = []
    settings = get_settings()

    for error in settings.validate():
        issues.append(f"Configuration: {error}")

    try:
        catalog = load_catalog()
        click.echo(f"Mood catalog: {len(catalog)} moods")
    except Exception as e:
        click.echo(f"Mood catalog: Error - {e}")
        issues.append("Mood catalog could not be loaded")

    auth_manager = get_auth()
    auth_status = auth_manager.current_status()
    if auth_status == AuthorizationStatus.DENIED:
        click.echo("Apple Music developer token: Not set")
        issues.append("Set APPLE_MUSIC_DEVELOPER_TOKEN to use Apple Music")
    else:
        click.echo("Apple Music developer token: OK")
        if auth_status == AuthorizationStatus.AUTHORIZED:
            click.echo("Apple Music user token: OK")
        else:
            click.echo("Apple Music user token: Not set")
            issues.append("Run 'melomo auth login' to play music with Apple Music")

        async def check_api() -> bool:
            async with AppleMusicClient(settings=settings, auth=auth_manager) as client:
                return await client.check_connection()

        if asyncio.run(check_api()):
            click.echo("Apple Music API: OK")
        else:
            click.echo("Apple Music API: Failed")
            issues.append("Apple Music API request failed, check your tokens and connection")

    storage_dir = settings.get_storage_directory()
    if storage_dir.exists() and storage_dir.is_dir():
        click.echo(f"State directory: {storage_dir}")
    else:
        click.echo(f"State directory: {storage_dir} (will be created)")

    opener = SystemURLOpener()
    if opener.handler:
        click.echo(f"App links: {opener.handler}")
    else:
        click.echo("App links: No URL handler found, app deep links cannot be opened")

    current_log = get_current_log_file()
    if current_log:
        click.echo(f"Logging: {current_log}")
    else:
        click.echo("Logging: Console only")

    if issues:
        click.echo(f"\nFound {len(issues)} issues:")
        for issue in issues:
            click.echo(f"   • {issue}")
    else:
        click.echo("\nAll systems operational!")


# Entry point for module execution
if __name__ == '__main__':
    cli()
