"""HTTP, process and PATH collaborators used by the installer."""

from __future__ import annotations

import http.client
import json
import os
import shutil
import ssl
import subprocess
import urllib.request
from pathlib import Path
from typing import Any, MutableMapping, Protocol, Sequence

import certifi

from staticsites_core.config import SetupConfig
from staticsites_core.errors import MetadataFetchError
from staticsites_core.logging_setup import get_logger


USER_AGENT = "StaticSitesClientSetup/0.1"


class Downloader(Protocol):
    def download(self, url: str, dest: Path) -> Path: ...


class CommandRunner(Protocol):
    def output(self, command: str, args: Sequence[str] = ()) -> str: ...


class PathRegistry(Protocol):
    def add(self, path: Path) -> None: ...


def _build_ssl_context(config: SetupConfig) -> ssl.SSLContext:
    """Create TLS context with explicit CA handling."""
    if config.allow_insecure_tls:
        return ssl._create_unverified_context()

    if config.ca_bundle:
        return ssl.create_default_context(cafile=config.ca_bundle)

    return ssl.create_default_context(cafile=certifi.where())


def _urlopen(config: SetupConfig, url: str, timeout: int, accept: str = "*/*"):
    request = urllib.request.Request(
        url,
        headers={
            "User-Agent": USER_AGENT,
            "Accept": accept,
        },
    )
    return urllib.request.urlopen(request, timeout=timeout, context=_build_ssl_context(config))


class HttpReleaseSource:
    def __init__(self, config: SetupConfig) -> None:
        self.config = config

    def fetch(self) -> Any:
        url = self.config.metadata_url
        try:
            with _urlopen(self.config, url, timeout=self.config.metadata_timeout_s, accept="application/json") as response:
                return json.loads(response.read().decode("utf-8"))
        except (OSError, http.client.HTTPException, ValueError) as exc:
            raise MetadataFetchError(f"Could not fetch release metadata from {url}: {exc}") from exc


class HttpDownloader:
    def __init__(self, config: SetupConfig) -> None:
        self.config = config

    def download(self, url: str, dest: Path) -> Path:
        dest.parent.mkdir(parents=True, exist_ok=True)
        try:
            with _urlopen(self.config, url, timeout=self.config.download_timeout_s) as response, dest.open("wb") as fh:
                shutil.copyfileobj(response, fh, 1024 * 1024)
        except Exception:
            dest.unlink(missing_ok=True)
            raise
        return dest


class SubprocessRunner:
    def output(self, command: str, args: Sequence[str] = ()) -> str:
        executable = shutil.which(command) or command
        get_logger().debug(f"[command]{executable} {' '.join(args)}".rstrip())
        completed = subprocess.run(
            [executable, *args],
            check=True,
            capture_output=True,
            text=True,
        )
        return completed.stdout.strip()


class ProcessPath:
    """Prepends directories to PATH for this process and later workflow steps."""

    def __init__(self, environ: MutableMapping[str, str] | None = None) -> None:
        self.environ = os.environ if environ is None else environ

    def add(self, path: Path) -> None:
        github_path = self.environ.get("GITHUB_PATH")
        if github_path:
            with open(github_path, "a", encoding="utf-8") as fh:
                fh.write(f"{path}\n")

        current = self.environ.get("PATH", "")
        self.environ["PATH"] = f"{path}{os.pathsep}{current}" if current else str(path)


def execute_tool(runner: CommandRunner, name: str) -> str:
    logger = get_logger()
    logger.info(f"Running {name}", extra={"event": "tool_execute"})
    stdout = runner.output(name)
    for line in stdout.splitlines():
        logger.info(line)
    return stdout
