"""Run the probe engine and its telemetry API under uvicorn."""

from __future__ import annotations

import argparse
import os
import sys

import uvicorn

from edgeprobe.main import create_app
from edgeprobe.config.settings import load_settings
from edgeprobe.middleware.error_handler import ConfigError


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="edgeprobe", description=__doc__)
    parser.add_argument(
        "config",
        nargs="?",
        default=os.environ.get("PROBE_CONFIG", "probe.yaml"),
        help="YAML config file (default: $PROBE_CONFIG or probe.yaml)",
    )
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config)
    except ConfigError as exc:
        print(f"edgeprobe: {exc.message}", file=sys.stderr)
        return 2

    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
