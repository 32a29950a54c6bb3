"""CLI entrypoint that installs StaticSitesClient and optionally runs it."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from staticsites_core.config import load_config, read_inputs
from staticsites_core.errors import SetupError
from staticsites_core.logging_setup import configure_logging

from .installer import InstallResult, build_installer
from .service import execute_tool


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="staticsites-setup", description="Install StaticSitesClient for a workflow job")
    parser.add_argument("--version", default=None, help="Build id (e.g. 1.0.020761) or channel name; defaults to INPUT_VERSION or 'stable'")
    parser.add_argument("--execute", action="store_true", default=None, help="Run the tool after install (defaults to INPUT_EXECUTE)")
    parser.add_argument("--metadata-url", default=None, help="Override the release metadata URL")
    parser.add_argument("--cache-dir", default=None, help="Directory for cached installs")
    parser.add_argument("--no-cache", action="store_true", help="Always download, never restore or save")
    parser.add_argument("--log-file", default=None, help="Also write JSON log lines to this file")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _summary(result: InstallResult) -> dict[str, object]:
    return {
        "name": result.name,
        "version": result.version,
        "path": str(result.path),
        "restored_from_cache": result.restored_from_cache,
        "download_url": result.download_url,
    }


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logger = configure_logging(
        debug=args.debug,
        log_file=Path(args.log_file) if args.log_file else None,
    )

    try:
        config = load_config(
            metadata_url=args.metadata_url,
            cache_dir=Path(args.cache_dir) if args.cache_dir else None,
            cache_enabled=False if args.no_cache else None,
        )
        inputs = read_inputs(version=args.version, execute=args.execute)

        installer = build_installer(config)
        result = installer.install(inputs)
        _print_json(_summary(result))

        if inputs.execute:
            execute_tool(installer.runner, result.name)
    except SetupError as exc:
        logger.error(str(exc), extra={"event": type(exc).__name__})
        return 1
    except Exception as exc:
        logger.error(f"{exc}", exc_info=args.debug, extra={"event": "run_failed"})
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
