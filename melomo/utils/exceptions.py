"""
Exception classes for MeloMo.

This module defines all custom exceptions used throughout the application.
Each exception carries a human-readable message that is safe to show to the
user as-is, plus an optional details dictionary for logging.

Exception Hierarchy:
    MeloMoError (base)
        AuthorizationFailedError - Catalog path attempted without authorization
        NetworkError - Transport, queue or playback submission failures
        NoResultsFoundError - Every search strategy came back empty
        InvalidMoodError - Malformed or unknown mood selection
        ProviderUnavailableError - Music service outage
        ConfigError - Configuration file issues
        StorageError - Key-value persistence issues
        CatalogError - Mood catalog data issues

The first five are the generation error kinds the user interface renders.
InvalidMoodError and ProviderUnavailableError are part of that taxonomy even
though no generation path raises them today.
"""

from typing import Any, Dict, Optional


class MeloMoError(Exception):
    """
    Base exception for all MeloMo errors.

    All custom exceptions in this project inherit from this class, allowing
    callers to catch every MeloMo error with a single except clause.

    Subclasses define ``default_message``; raising one without arguments
    yields the canonical user-facing text for that error kind.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (query, provider, ...).

    Example:
        try:
            await controller.generate(mood)
        except MeloMoError as e:
            logger.error(f"Generation failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    default_message = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description. Falls back to the
                     class ``default_message`` when omitted.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'mood': title of the mood being generated
                     - 'query': search query that failed
                     - 'original_error': the underlying exception text
        """
        message = message or self.default_message
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class AuthorizationFailedError(MeloMoError):
    """
    Raised when the Apple Music path runs without confirmed authorization.

    Both the orchestrator (cached authorization flag) and the queue step
    (live status re-check) raise this before any playback is attempted.
    """

    default_message = "Music service authorization failed. Please check your permissions."


class NetworkError(MeloMoError):
    """
    Generic catch-all for transport, queue and playback submission failures.

    The underlying cause is chained (``raise ... from e``) and kept in
    ``details['original_error']`` but never surfaced to the user.
    """

    default_message = "Network connection error. Please check your internet connection."


class NoResultsFoundError(MeloMoError):
    """Raised when all three catalog search strategies returned no songs."""

    default_message = "No music found for this mood. Try a different mood or search terms."


class InvalidMoodError(MeloMoError):
    """Raised for a malformed mood record or an unknown mood selection."""

    default_message = "Invalid mood selection. Please try again."


class ProviderUnavailableError(MeloMoError):
    """Raised when a music service is known to be unavailable."""

    default_message = "Music service is currently unavailable. Please try again later."


class ConfigError(MeloMoError):
    """
    Raised when there's an issue with the configuration file.

    Common causes:
        - config.yaml has invalid YAML syntax
        - Invalid field values (e.g., negative cooldown)
    """

    default_message = "Invalid configuration."


class StorageError(MeloMoError):
    """
    Raised when the key-value store cannot be read or written.

    Common causes:
        - Permission denied on the state directory
        - Disk full
        - Invalid storage key
    """

    default_message = "Failed to access local storage."


class CatalogError(MeloMoError):
    """Raised when the bundled mood catalog cannot be loaded or is malformed."""

    default_message = "Mood catalog could not be loaded."
