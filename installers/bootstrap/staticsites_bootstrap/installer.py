"""Cache-aware install of a resolved StaticSitesClient release."""

from __future__ import annotations

import http.client
import platform
import shutil
import sys
import uuid
from dataclasses import dataclass
from pathlib import Path

from staticsites_core.config import SetupConfig, SourceInputs
from staticsites_core.errors import DownloadError
from staticsites_core.logging_setup import get_logger

from .cache import CacheStore, LocalCacheStore, NullCacheStore, derive_cache_key, linux_codename
from .resolver import PlatformTarget, ReleaseEntry, ReleaseSource, resolve_release, resolve_target
from .service import (
    CommandRunner,
    Downloader,
    HttpDownloader,
    HttpReleaseSource,
    PathRegistry,
    ProcessPath,
    SubprocessRunner,
)


@dataclass(frozen=True)
class InstallResult:
    name: str
    version: str
    path: Path
    restored_from_cache: bool
    download_url: str | None = None


class ToolInstaller:
    """Resolve, restore-or-download, and register the tool on PATH.

    ``os_name`` follows ``sys.platform`` spelling (``linux``, ``win32``,
    ``darwin``) and is used verbatim in cache keys; ``machine`` is the raw
    ``platform.machine()`` value.
    """

    def __init__(
        self,
        config: SetupConfig,
        releases: ReleaseSource,
        downloader: Downloader,
        cache: CacheStore,
        runner: CommandRunner,
        path_registry: PathRegistry,
        os_name: str | None = None,
        machine: str | None = None,
    ) -> None:
        self.config = config
        self.releases = releases
        self.downloader = downloader
        self.cache = cache
        self.runner = runner
        self.path_registry = path_registry
        self.os_name = os_name or sys.platform
        self.machine = machine or platform.machine()
        self.logger = get_logger()

    def install(self, inputs: SourceInputs) -> InstallResult:
        tool = self.config.tool_name
        target = resolve_target(self.os_name, self.machine)

        self.logger.info(f"Fetching release metadata for version: {inputs.version}")
        release = resolve_release(self.releases, inputs.version)
        marker = release.version_marker

        install_dir = self.config.temp_root / f"{tool}-{marker}"
        self.logger.info(
            f"Version to install: {marker} (target directory: {install_dir})",
            extra={"event": "version_resolved"},
        )
        cache_key = self.cache_key(marker, target)

        restored = self._try_restore([install_dir], cache_key)

        download_url: str | None = None
        if not restored:
            download_url, filename = self._download_source(release, target)
            scratch_dir = self.config.temp_root / uuid.uuid4().hex
            try:
                download_path = self._download(download_url, scratch_dir / filename)
                self._place(download_path, install_dir, filename)
            finally:
                shutil.rmtree(scratch_dir, ignore_errors=True)
            self._try_save([install_dir], cache_key)

        self.path_registry.add(install_dir)
        tool_version = self.runner.output(tool, self.config.version_args)
        self.logger.debug(tool_version)

        return InstallResult(
            name=tool,
            version=release.version,
            path=install_dir,
            restored_from_cache=restored,
            download_url=download_url,
        )

    def cache_key(self, version_marker: str, target: PlatformTarget) -> str:
        codename = linux_codename(self.runner) if self.os_name == "linux" else None
        key = derive_cache_key(self.config.tool_name, version_marker, self.os_name, target.arch, codename)
        self.logger.info(f"Cache key: {key}")
        return key

    def _try_restore(self, paths: list[Path], key: str) -> bool:
        tool = self.config.tool_name
        try:
            hit_key = self.cache.restore(paths, key)
        except Exception as exc:
            self.logger.warning(str(exc), extra={"event": "cache_restore_failed"})
            return False

        if hit_key is None:
            self.logger.warning(f"Cache for {tool} not found", extra={"event": "cache_miss"})
            return False

        self.logger.info(f"{tool} restored from cache: {hit_key}", extra={"event": "cache_hit"})
        return True

    def _try_save(self, paths: list[Path], key: str) -> int:
        try:
            cache_id = self.cache.save(paths, key)
        except Exception as exc:
            self.logger.warning(str(exc), extra={"event": "cache_save_failed"})
            return 0

        if cache_id:
            self.logger.info(f"{self.config.tool_name} saved to cache (cacheId: {cache_id}, cacheKey: {key})")
        return cache_id

    def _download_source(self, release: ReleaseEntry, target: PlatformTarget) -> tuple[str, str]:
        release_file = release.file_for(target)
        return release_file.url, release_file.filename or self.config.tool_name

    def _download(self, url: str, dest: Path) -> Path:
        try:
            path = self.downloader.download(url, dest)
        except (OSError, http.client.HTTPException, ValueError) as exc:
            raise DownloadError(f"Could not download {self.config.tool_name} from {url}, error: {exc}") from exc

        self.logger.info(f"Downloaded from {url} to {path}", extra={"event": "downloaded"})
        return path

    def _place(self, download_path: Path, install_dir: Path, filename: str) -> Path:
        destination = install_dir / filename
        install_dir.mkdir(parents=True, exist_ok=True)
        if destination.is_dir():
            shutil.rmtree(destination)
        shutil.copy2(download_path, destination)
        destination.chmod(0o755)
        download_path.unlink(missing_ok=True)

        self.logger.info(f"Extracted {filename} to {install_dir}")
        return destination


def build_installer(config: SetupConfig) -> ToolInstaller:
    if config.cache_enabled and config.cache_dir is not None:
        cache: CacheStore = LocalCacheStore(config.cache_dir)
    else:
        cache = NullCacheStore()

    return ToolInstaller(
        config=config,
        releases=HttpReleaseSource(config),
        downloader=HttpDownloader(config),
        cache=cache,
        runner=SubprocessRunner(),
        path_registry=ProcessPath(),
    )
