"""Cache keys and the keyed archive store used to skip repeat downloads."""

from __future__ import annotations

import io
import json
import re
import shutil
import subprocess
import tarfile
import tempfile
import zlib
from pathlib import Path
from typing import Protocol, Sequence

from staticsites_core.errors import CacheError, CodenameQueryError

from .service import CommandRunner


_UNSAFE_KEY_RE = re.compile(r"[^A-Za-z0-9._-]")
_MANIFEST = "manifest.json"


class CacheStore(Protocol):
    def restore(self, paths: Sequence[Path], key: str) -> str | None: ...

    def save(self, paths: Sequence[Path], key: str) -> int: ...


def derive_cache_key(
    tool_name: str,
    version_marker: str,
    os_name: str,
    arch: str,
    codename: str | None = None,
) -> str:
    key = f"{tool_name}-{version_marker}-{os_name}-{arch}"
    if codename:
        key = f"{key}-{codename}"
    return f"{key}-cache"


def linux_codename(runner: CommandRunner) -> str:
    """Distribution codename, so Linux variants never share a cache entry."""
    try:
        codename = runner.output("lsb_release", ["-cs"])
    except (OSError, subprocess.SubprocessError) as exc:
        raise CodenameQueryError(f"Could not determine Linux distribution codename: {exc}") from exc
    if not codename:
        raise CodenameQueryError("lsb_release reported an empty distribution codename")
    return codename


class NullCacheStore:
    def restore(self, paths: Sequence[Path], key: str) -> str | None:
        return None

    def save(self, paths: Sequence[Path], key: str) -> int:
        return 0


class LocalCacheStore:
    """One gzip tarball per key under ``root``.

    Each saved path is stored under its index in the archive so a restore
    puts it back at the same absolute location.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def archive_path(self, key: str) -> Path:
        return self.root / f"{_UNSAFE_KEY_RE.sub('_', key)}.tar.gz"

    def restore(self, paths: Sequence[Path], key: str) -> str | None:
        archive = self.archive_path(key)
        if not archive.exists():
            return None

        try:
            with tempfile.TemporaryDirectory(prefix="staticsites-restore-") as tmp:
                staging = Path(tmp)
                with tarfile.open(archive, "r:gz") as tf:
                    if hasattr(tarfile, "data_filter"):
                        tf.extractall(staging, filter="data")
                    else:
                        tf.extractall(staging)
                manifest = json.loads((staging / _MANIFEST).read_text(encoding="utf-8"))
                if len(manifest.get("paths", [])) != len(paths):
                    raise CacheError(f"Cache entry {key} does not match the requested paths")

                for idx, dest in enumerate(paths):
                    src = staging / str(idx)
                    dest = Path(dest)
                    if src.is_dir():
                        shutil.copytree(src, dest, dirs_exist_ok=True)
                    elif src.exists():
                        dest.parent.mkdir(parents=True, exist_ok=True)
                        shutil.copy2(src, dest)
        except (OSError, tarfile.TarError, ValueError) as exc:
            raise CacheError(f"Failed to restore cache entry {key}: {exc}") from exc

        return key

    def save(self, paths: Sequence[Path], key: str) -> int:
        archive = self.archive_path(key)
        if archive.exists():
            raise CacheError(
                f"Unable to reserve cache with key {key}, another job may be creating this cache."
            )

        missing = [str(p) for p in paths if not Path(p).exists()]
        if missing:
            raise CacheError(f"Path Validation Error: {', '.join(missing)} not found, cannot save cache")

        self.root.mkdir(parents=True, exist_ok=True)
        partial = archive.with_name(archive.name + ".partial")
        try:
            with tarfile.open(partial, "w:gz") as tf:
                for idx, path in enumerate(paths):
                    tf.add(str(path), arcname=str(idx))
                manifest = json.dumps({"key": key, "paths": [str(p) for p in paths]}, indent=2).encode("utf-8")
                info = tarfile.TarInfo(_MANIFEST)
                info.size = len(manifest)
                tf.addfile(info, io.BytesIO(manifest))
            partial.replace(archive)
        except (OSError, tarfile.TarError) as exc:
            partial.unlink(missing_ok=True)
            raise CacheError(f"Failed to save cache entry {key}: {exc}") from exc

        # Zero means nothing was saved.
        return zlib.crc32(key.encode("utf-8")) or 1
