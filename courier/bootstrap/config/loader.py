import argparse
import os
from pathlib import Path
from typing import Any

import yaml


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="courier",
        description=(
            "Inspect and decode courier envelope frames.\n\n"
            "A frame is a JSON document {\"body\": ..., \"headers\": {...}}\n"
            "as produced by EnvelopeCodec.encode()."
        ),
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument(
        "-c", "--config",
        type=str,
        help="Path to a courier configuration file"
    )

    parser.add_argument(
        "-l", "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help=(
            "Logging verbosity.\n"
            "Overrides the 'log_level' setting of the configuration file."
        ),
    )

    parser.add_argument(
        "-s", "--scan",
        action="append",
        default=[],
        metavar="PACKAGE",
        help=(
            "Package to import before decoding so that its message types\n"
            "are registered. May be given several times."
        ),
    )

    commands = parser.add_subparsers(dest="command", required=True)

    decode = commands.add_parser("decode", help="Decode a frame and print the envelope")
    decode.add_argument("frame", help="Frame file, or '-' to read from stdin")

    inspect = commands.add_parser(
        "inspect",
        help="Show the body encoding and the type names referenced by a frame"
    )
    inspect.add_argument("frame", help="Frame file, or '-' to read from stdin")

    return parser


def get_configfile(raw: str | None = None) -> Path | None:
    # Priority: CLI > ENV > no file
    raw = raw or os.getenv("COURIER_CONFIG")
    if raw is None:
        return None

    file = Path(raw)
    if not file.is_file():
        raise SystemExit(
            f"[config] Configuration file not found: '{file}'.\n"
            "  - Use --config <file.yaml>\n"
            "  - Or set the COURIER_CONFIG environment variable"
        )

    return file


def load_configfile(file: Path | None) -> dict[str, Any]:
    if file is None:
        return {}

    with file.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise SystemExit(f"[config] '{file}' must contain a mapping at top level.")

    return data
