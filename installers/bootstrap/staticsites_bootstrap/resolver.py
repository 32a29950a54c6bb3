"""Release selection and OS/architecture mapping for StaticSitesClient downloads."""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib.parse import urlparse

from staticsites_core.errors import (
    MetadataFetchError,
    MissingPlatformAssetError,
    NoMatchingReleaseError,
    UnsupportedArchitectureError,
    UnsupportedPlatformError,
)


BUILD_ID_RE = re.compile(r"\d+\.\d+\.\d+")
SUPPORTED_ARCH = "x64"


class ReleaseSource(Protocol):
    def fetch(self) -> Any:
        """Return the decoded release metadata document."""
        ...


@dataclass(frozen=True)
class PlatformTarget:
    platform: str
    arch: str

    @property
    def key(self) -> str:
        return f"{self.platform}-{self.arch}"


@dataclass(frozen=True)
class ReleaseFile:
    url: str

    @property
    def filename(self) -> str:
        return posixpath.basename(urlparse(self.url).path)


@dataclass(frozen=True)
class ReleaseEntry:
    build_id: str
    version: str
    files: dict[str, ReleaseFile] = field(default_factory=dict)

    @property
    def version_marker(self) -> str:
        return f"{self.build_id}-{self.version}"

    def file_for(self, target: PlatformTarget) -> ReleaseFile:
        try:
            return self.files[target.key]
        except KeyError:
            raise MissingPlatformAssetError(
                f"Release {self.version_marker} has no download for {target.key}"
            ) from None


def _normalize_arch(machine: str) -> str:
    m = machine.lower()
    if m in ("x86_64", "amd64", "x64"):
        return "x64"
    if m in ("aarch64", "arm64"):
        return "arm64"
    return m


def _normalize_os(os_name: str) -> str:
    s = os_name.lower()
    if s in ("win32", "windows"):
        return "win"
    if s in ("darwin", "macos"):
        return "osx"
    if s == "linux":
        return "linux"
    raise UnsupportedPlatformError(f"Unsupported platform: {os_name}")


def resolve_target(os_name: str, machine: str) -> PlatformTarget:
    arch = _normalize_arch(machine)
    if arch != SUPPORTED_ARCH:
        raise UnsupportedArchitectureError(f"Unsupported architecture: {arch}")
    return PlatformTarget(platform=_normalize_os(os_name), arch=arch)


def _parse_entry(item: dict[str, Any]) -> ReleaseEntry:
    files: dict[str, ReleaseFile] = {}
    raw_files = item.get("files")
    for key, descriptor in (raw_files.items() if isinstance(raw_files, dict) else ()):
        if isinstance(descriptor, dict) and descriptor.get("url"):
            files[key] = ReleaseFile(url=str(descriptor["url"]))
    return ReleaseEntry(
        build_id=str(item.get("buildId", "")),
        version=str(item.get("version", "")),
        files=files,
    )


def select_release(document: Any, specifier: str) -> ReleaseEntry:
    """Pick the entry matching ``specifier``.

    A specifier containing a dotted numeric triple is matched against
    ``buildId``; anything else is matched against ``version`` (the
    channel name, e.g. ``stable``).
    """
    if not isinstance(document, list) or not document:
        raise MetadataFetchError("Release metadata is not a non-empty list of releases")

    field_name = "buildId" if BUILD_ID_RE.search(specifier) else "version"
    for item in document:
        if isinstance(item, dict) and item.get(field_name) == specifier:
            return _parse_entry(item)

    raise NoMatchingReleaseError(f"No matching release found for {field_name} '{specifier}'")


def resolve_release(source: ReleaseSource, specifier: str) -> ReleaseEntry:
    return select_release(source.fetch(), specifier)
