"""Simple CLI for the dispatcher.

Usage examples:
- JSON string input:
  python cli.py "{\"type\":\"design\",\"prompt\":\"a calm spa bathroom\"}"

- JSON file input (prefix with @):
  python cli.py @request.json

- Pretty print:
  python cli.py @request.json --pretty

Notes:
- Runs exactly one request through the same Dispatcher the Lambda uses.
- Exit code: 0 on 2xx, 1 on any error response, 2 when the input cannot be read.
"""
import argparse
import json
import sys
from pathlib import Path

from src.designproxy.dispatcher import Dispatcher
from src.designproxy.logging_util import get_logger
from src.designproxy.types import ProxyRequest

logger = get_logger(__name__)

def _load_input(spec: str) -> str:
    if spec.startswith("@"):
        p = Path(spec[1:])
        return p.read_text(encoding="utf-8")
    return spec

def main(argv=None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("input", help="JSON string or @path/to/json")
    ap.add_argument("--pretty", action="store_true", help="Pretty print the output JSON")
    ap.add_argument("--method", default="POST", help="HTTP method to simulate (default: POST)")
    args = ap.parse_args(argv)

    try:
        body = _load_input(args.input)
    except OSError as e:
        logger.error("Failed to read input: %s", e)
        return 2

    resp = Dispatcher().handle(ProxyRequest(method=args.method, body=body, client_id="cli", request_id="CLI"))

    if args.pretty:
        print(json.dumps(resp.body, ensure_ascii=False, indent=2))
    else:
        print(json.dumps(resp.body, ensure_ascii=False))

    return 0 if resp.ok else 1

if __name__ == "__main__":
    sys.exit(main())
