from __future__ import annotations

import json
import logging
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "installers" / "bootstrap"))

import staticsites_bootstrap.cli as cli
from staticsites_core.errors import NoMatchingReleaseError
from staticsites_bootstrap.installer import InstallResult


class _Runner:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[str] = []

    def output(self, command, args=()):
        self.calls.append(command)
        if self.error is not None:
            raise self.error
        return "deployed"


class _Installer:
    def __init__(self, error: Exception | None = None, runner: _Runner | None = None) -> None:
        self.error = error
        self.runner = runner or _Runner()
        self.inputs = None

    def install(self, inputs):
        self.inputs = inputs
        if self.error is not None:
            raise self.error
        return InstallResult(
            name="StaticSitesClient",
            version="stable",
            path=Path("/runner/_temp/StaticSitesClient-1.0.020761-stable"),
            restored_from_cache=False,
            download_url="https://example.test/StaticSitesClient",
        )


def _patch(monkeypatch, installer: _Installer) -> dict:
    seen: dict = {}

    def fake_build_installer(config):
        seen["config"] = config
        return installer

    monkeypatch.setattr(cli, "configure_logging", lambda **_kw: logging.getLogger("staticsites"))
    monkeypatch.setattr(cli, "build_installer", fake_build_installer)
    for name in ("INPUT_VERSION", "INPUT_EXECUTE", "STATICSITES_CACHE", "STATICSITES_METADATA_URL"):
        monkeypatch.delenv(name, raising=False)
    return seen


def test_parser_defaults() -> None:
    args = cli.build_parser().parse_args([])
    assert args.version is None
    assert args.execute is None
    assert args.no_cache is False


def test_main_prints_install_summary(monkeypatch, capsys) -> None:
    installer = _Installer()
    _patch(monkeypatch, installer)

    assert cli.main(["--version", "Stable"]) == 0
    assert installer.inputs.version == "stable"
    assert installer.runner.calls == []

    out = json.loads(capsys.readouterr().out)
    assert out["restored_from_cache"] is False
    assert out["download_url"] == "https://example.test/StaticSitesClient"


def test_main_reads_step_inputs_from_environment(monkeypatch) -> None:
    installer = _Installer()
    _patch(monkeypatch, installer)
    monkeypatch.setenv("INPUT_VERSION", "1.0.020761")
    monkeypatch.setenv("INPUT_EXECUTE", "TRUE")

    assert cli.main([]) == 0
    assert installer.inputs.version == "1.0.020761"
    assert installer.runner.calls == ["StaticSitesClient"]


def test_main_no_cache_flag(monkeypatch) -> None:
    seen = _patch(monkeypatch, _Installer())
    assert cli.main(["--no-cache", "--metadata-url", "https://mirror.test/v.json"]) == 0
    assert seen["config"].cache_enabled is False
    assert seen["config"].metadata_url == "https://mirror.test/v.json"


def test_main_setup_error_fails_run(monkeypatch, caplog) -> None:
    _patch(monkeypatch, _Installer(error=NoMatchingReleaseError("No matching release found for buildId '9.9.9'")))

    with caplog.at_level(logging.ERROR, logger="staticsites"):
        assert cli.main(["--version", "9.9.9"]) == 1
    assert "No matching release found" in caplog.text


def test_main_execute_failure_fails_run(monkeypatch, caplog) -> None:
    runner = _Runner(error=subprocess.CalledProcessError(2, ["StaticSitesClient"]))
    _patch(monkeypatch, _Installer(runner=runner))

    with caplog.at_level(logging.ERROR, logger="staticsites"):
        assert cli.main(["--execute"]) == 1
    assert "non-zero exit status 2" in caplog.text
