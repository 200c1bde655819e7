"""
Utilities package
Logging, exceptions and common helper functions
"""

from .logger import (
    get_logger,
    configure_from_settings,
    setup_logging,
    log_performance,
    get_current_log_file
)
from .helpers import (
    encode_query_component,
    is_valid_url,
    async_retry_on_failure,
    format_duration,
    truncate_string,
    get_current_timestamp,
    format_timestamp
)
from .exceptions import (
    MeloMoError,
    AuthorizationFailedError,
    NetworkError,
    NoResultsFoundError,
    InvalidMoodError,
    ProviderUnavailableError,
    ConfigError,
    StorageError,
    CatalogError
)

__all__ = [
    # Logger exports
    'get_logger',
    'configure_from_settings',
    'setup_logging',
    'log_performance',
    'get_current_log_file',

    # Helper exports
    'encode_query_component',
    'is_valid_url',
    'async_retry_on_failure',
    'format_duration',
    'truncate_string',
    'get_current_timestamp',
    'format_timestamp',

    # Exceptions
    'MeloMoError',
    'AuthorizationFailedError',
    'NetworkError',
    'NoResultsFoundError',
    'InvalidMoodError',
    'ProviderUnavailableError',
    'ConfigError',
    'StorageError',
    'CatalogError'
]
