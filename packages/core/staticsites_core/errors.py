"""Error types raised by the setup pipeline."""

from __future__ import annotations


class SetupError(RuntimeError):
    """A failure that ends the setup run."""


class MetadataFetchError(SetupError):
    pass


class NoMatchingReleaseError(SetupError):
    pass


class UnsupportedArchitectureError(SetupError):
    pass


class UnsupportedPlatformError(SetupError):
    pass


class MissingPlatformAssetError(SetupError):
    """The resolved release has no download for the running platform."""


class DownloadError(SetupError):
    pass


class CodenameQueryError(SetupError):
    pass


class CacheError(RuntimeError):
    """Cache restore/save problem. Callers downgrade it to a warning."""
