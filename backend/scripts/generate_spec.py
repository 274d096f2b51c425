#!/usr/bin/env python
"""Write the helpdesk OpenAPI document to disk or stdout.

Usage:
  python backend/scripts/generate_spec.py --out backend/openapi.json
  python backend/scripts/generate_spec.py > openapi.json

Keys are sorted so the output is stable between runs and diffs cleanly
when committed for client generation.
"""
from __future__ import annotations
import argparse, json, pathlib, sys

ROOT = pathlib.Path(__file__).resolve().parents[2]
sys.path.append(str(ROOT / "backend"))

from helpdesk.openapi import build_openapi_spec  # type: ignore  # noqa: E402


def render_spec(indent: int = 2) -> str:
    return json.dumps(build_openapi_spec(), indent=indent, sort_keys=True) + '\n'


def main(argv: list[str]) -> int:
    p = argparse.ArgumentParser(description="Render the helpdesk OpenAPI document")
    p.add_argument('--out', dest='out', help='Path to write JSON (stdout when omitted)')
    p.add_argument('--indent', type=int, default=2, help='JSON indent width')
    args = p.parse_args(argv)

    text = render_spec(args.indent)
    if not args.out:
        sys.stdout.write(text)
        return 0

    out_path = pathlib.Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(text)
    print(f"Wrote OpenAPI JSON to {out_path} ({len(text)} bytes)", file=sys.stderr)
    return 0


if __name__ == '__main__':  # pragma: no cover
    sys.exit(main(sys.argv[1:]))
