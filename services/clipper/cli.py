#!/usr/bin/env python3
"""Cut one MM:SS window out of a remote video without re-encoding it."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict, replace

from .config import ClipperSettings
from .logs import configure_logging
from .models import ErrorKind
from .service import ClipService


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--url", required=True)
    parser.add_argument("--start", required=True, help="MM:SS")
    parser.add_argument("--end", required=True, help="MM:SS")
    parser.add_argument("--public-root", default=None)
    parser.add_argument("--scratch-root", default=None)
    parser.add_argument("--log-level", default="INFO")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    settings = ClipperSettings()
    if args.public_root:
        settings = replace(settings, public_root=args.public_root)
    if args.scratch_root:
        settings = replace(settings, scratch_root=args.scratch_root)
    settings.clips_dir.mkdir(parents=True, exist_ok=True)

    outcome = ClipService(settings).create_clip(args.url, args.start, args.end)
    print(json.dumps(asdict(outcome), default=str, indent=2))

    if outcome.succeeded:
        return 0
    return 2 if outcome.error_kind == ErrorKind.validation_error else 1


if __name__ == "__main__":
    sys.exit(main())
