"""Immutable run configuration and step inputs read from the environment."""

from __future__ import annotations

import os
import platform
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping


TOOL_NAME = "StaticSitesClient"
RELEASE_METADATA_URL = "https://swalocaldeploy.azureedge.net/downloads/versions.json"
DEFAULT_VERSION = "stable"
TRUE_VALUES = ("true", "True", "TRUE", "1")


@dataclass(frozen=True)
class SourceInputs:
    version: str = DEFAULT_VERSION
    execute: bool = False


@dataclass(frozen=True)
class SetupConfig:
    tool_name: str = TOOL_NAME
    metadata_url: str = RELEASE_METADATA_URL
    version_args: tuple[str, ...] = ("version",)
    temp_root: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))
    cache_dir: Path | None = None
    cache_enabled: bool = True
    metadata_timeout_s: int = 30
    download_timeout_s: int = 180
    ca_bundle: str | None = None
    allow_insecure_tls: bool = False


def parse_bool(value: str | None) -> bool:
    """Only the literal truthy spellings count; everything else is false."""
    return (value or "").strip() in TRUE_VALUES


def default_cache_dir(environ: Mapping[str, str] | None = None) -> Path:
    env = os.environ if environ is None else environ
    system = platform.system()
    if system == "Windows":
        base = Path(env.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
        return base / "StaticSites" / "cache"
    if system == "Darwin":
        return Path.home() / "Library" / "Caches" / "StaticSites"
    base = Path(env.get("XDG_CACHE_HOME", Path.home() / ".cache"))
    return base / "staticsites"


def _get_input(env: Mapping[str, str], name: str) -> str:
    # Same variable naming the Actions runner uses for `with:` inputs.
    return env.get(f"INPUT_{name.replace(' ', '_').upper()}", "").strip()


def read_inputs(
    environ: Mapping[str, str] | None = None,
    version: str | None = None,
    execute: bool | None = None,
) -> SourceInputs:
    env = os.environ if environ is None else environ
    raw_version = version if version is not None else _get_input(env, "version")
    raw_execute = execute if execute is not None else parse_bool(_get_input(env, "execute"))
    return SourceInputs(
        version=(raw_version.strip().lower() or DEFAULT_VERSION),
        execute=bool(raw_execute),
    )


def load_config(environ: Mapping[str, str] | None = None, **overrides) -> SetupConfig:
    env = os.environ if environ is None else environ

    temp_root = Path(env.get("RUNNER_TEMP") or tempfile.gettempdir())
    cache_dir = Path(env["STATICSITES_CACHE_DIR"]) if env.get("STATICSITES_CACHE_DIR") else default_cache_dir(env)
    cache_flag = env.get("STATICSITES_CACHE")

    values = {
        "metadata_url": env.get("STATICSITES_METADATA_URL") or RELEASE_METADATA_URL,
        "temp_root": temp_root,
        "cache_dir": cache_dir,
        "cache_enabled": True if cache_flag is None or not cache_flag.strip() else parse_bool(cache_flag),
        "ca_bundle": env.get("STATICSITES_CA_BUNDLE", "").strip() or None,
        "allow_insecure_tls": env.get("STATICSITES_ALLOW_INSECURE_TLS", "").strip() == "1",
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return SetupConfig(**values)
