import argparse
import json
import logging
import sys
from typing import Dict, List, Optional

from .clients.errors import NetworkError
from .clients.http import TypedHttpClient
from .clients.types import NOTHING, HttpMethod
from .config.config import ConfigurationError, load_config

log = logging.getLogger("typed_http")


def _parse_headers(values: List[str]) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    for raw in values:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise argparse.ArgumentTypeError(f"Header must look like 'Name: value', got {raw!r}")
        headers[name.strip()] = value.strip()
    return headers


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="typed-http", description="Send one HTTP request and print the decoded JSON body")
    parser.add_argument("method", type=str.upper, choices=[m.value for m in HttpMethod], help="HTTP method")
    parser.add_argument("url", help="Absolute http(s) URL")
    parser.add_argument("-H", "--header", action="append", default=[], help="Request header as 'Name: value' (repeatable)")
    body = parser.add_mutually_exclusive_group()
    body.add_argument("-d", "--data", help="Raw request body")
    body.add_argument("--json", dest="json_body", help="JSON request body (validated before sending)")
    parser.add_argument("--optional", action="store_true", help="Treat an empty 2xx body as success")
    parser.add_argument("--config", help="YAML configuration file (overrides TYPED_HTTP_CONFIG)")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)

    try:
        cfg = load_config(args.config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(level=cfg.log_level)

    try:
        headers = _parse_headers(args.header)
        json_body = json.loads(args.json_body) if args.json_body is not None else NOTHING
    except (argparse.ArgumentTypeError, ValueError) as e:
        print(f"Invalid arguments: {e}", file=sys.stderr)
        return 2

    with TypedHttpClient.from_config(cfg) as client:
        call = client.request_optional if args.optional else client.request
        try:
            result = call(args.url, args.method, headers=headers, body=args.data, json_body=json_body)
        except NetworkError as e:
            log.debug("Request failed: %s", e)
            print(e.describe(), file=sys.stderr)
            return 1

    if result is not None:
        print(json.dumps(result, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    sys.exit(main())
