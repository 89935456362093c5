"""
Check a claimheaders config file

Loads the config exactly as the addon would, reports every validation error,
and prints the normalized config (all defaults filled in) on success.

Usage:
    claimheaders-check path/to/claimheaders.json
    claimheaders-check path/to/claimheaders.json --quiet
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from claimheaders.config import Config
from claimheaders.errors import ConfigError


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="claimheaders-check",
        description="Validate a claimheaders config file",
    )
    parser.add_argument("config", type=Path, help="Path to the JSON config file")
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only report errors; print nothing on success",
    )
    args = parser.parse_args(argv)

    try:
        config = Config.from_file(args.config)
    except ConfigError as e:
        print("VALIDATION ERRORS:", file=sys.stderr)
        for error in e.errors:
            print(f"  ERROR: {error}", file=sys.stderr)
        print(f"\n{len(e.errors)} validation error(s) found.", file=sys.stderr)
        return 1

    if not args.quiet:
        print(json.dumps(config.to_dict(), indent=2))

    return 0


if __name__ == "__main__":
    sys.exit(main())
