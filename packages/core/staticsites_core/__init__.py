"""Core services for StaticSitesClient setup: configuration, errors and logging."""

from .config import SetupConfig, SourceInputs, load_config, parse_bool, read_inputs
from .errors import (
    CacheError,
    CodenameQueryError,
    DownloadError,
    MetadataFetchError,
    MissingPlatformAssetError,
    NoMatchingReleaseError,
    SetupError,
    UnsupportedArchitectureError,
    UnsupportedPlatformError,
)
from .logging_setup import configure_logging, get_logger

__all__ = [
    "CacheError",
    "CodenameQueryError",
    "DownloadError",
    "MetadataFetchError",
    "MissingPlatformAssetError",
    "NoMatchingReleaseError",
    "SetupConfig",
    "SetupError",
    "SourceInputs",
    "UnsupportedArchitectureError",
    "UnsupportedPlatformError",
    "configure_logging",
    "get_logger",
    "load_config",
    "parse_bool",
    "read_inputs",
]
