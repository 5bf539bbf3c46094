#!/usr/bin/env python3
"""Scan the NIPs repository for kind names missing from the curated table.

Writes a ``kind_names:`` YAML block that can be merged into
``config/kindscope.yaml``. Needs a GitHub token in ``GITHUB_TOKEN``.

Usage:
    python tools/generate_kind_names.py                      # Print to stdout
    python tools/generate_kind_names.py -o kind_names.yaml   # Write a file
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import yaml

from kindscope.core.exceptions import LookupFailedError
from kindscope.core.logger import StructuredFormatter
from kindscope.explorer import KindLookupConfig, KindNameResolver
from kindscope.models import KindNames


def render(discovered: dict[int, str]) -> str:
    """Render discovered names as a sorted ``kind_names:`` YAML block."""
    ordered = {kind: discovered[kind] for kind in sorted(discovered)}
    return yaml.safe_dump({"kind_names": ordered}, sort_keys=False, allow_unicode=True)


async def discover() -> dict[int, str]:
    resolver = KindNameResolver(KindNames(), KindLookupConfig(enabled=True))
    return await resolver.discover()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("-o", "--output", type=Path, help="Write to this file instead of stdout")
    args = parser.parse_args()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.INFO)

    try:
        discovered = asyncio.run(discover())
    except LookupFailedError as e:
        print(f"Discovery failed: {e}", file=sys.stderr)
        sys.exit(1)

    content = render(discovered)
    if args.output is None:
        sys.stdout.write(content)
    else:
        args.output.write_text(content, encoding="utf-8")
        print(f"Wrote {len(discovered)} kind names to {args.output}", file=sys.stderr)


if __name__ == "__main__":
    main()
