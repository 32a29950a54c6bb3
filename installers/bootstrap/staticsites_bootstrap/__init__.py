"""Release resolution, cache-aware install and invocation of StaticSitesClient."""

from .cache import LocalCacheStore, NullCacheStore, derive_cache_key, linux_codename
from .installer import InstallResult, ToolInstaller, build_installer
from .resolver import (
    PlatformTarget,
    ReleaseEntry,
    ReleaseFile,
    resolve_release,
    resolve_target,
    select_release,
)
from .service import HttpDownloader, HttpReleaseSource, ProcessPath, SubprocessRunner, execute_tool

__all__ = [
    "HttpDownloader",
    "HttpReleaseSource",
    "InstallResult",
    "LocalCacheStore",
    "NullCacheStore",
    "PlatformTarget",
    "ProcessPath",
    "ReleaseEntry",
    "ReleaseFile",
    "SubprocessRunner",
    "ToolInstaller",
    "build_installer",
    "derive_cache_key",
    "execute_tool",
    "linux_codename",
    "resolve_release",
    "resolve_target",
    "select_release",
]
