"""Command line helpers: inspect resolved settings and check API connectivity."""

from __future__ import annotations

import argparse
import json
import logging
from typing import Optional, Sequence

from .client import PostageAppClient
from .config import JsonFileCredentials, configure, describe
from .errors import ConfigurationError

logger = logging.getLogger("postageapp.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="postageapp", description="PostageApp API client utilities")
    parser.add_argument("--credentials", help="JSON file with a 'postageapp' section of settings")
    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("config", help="Print the resolved settings")
    show.add_argument("--reveal", action="store_true", help="Do not mask API keys and secrets")

    sub.add_parser("check", help="Call get_project_info and report the outcome")

    serve = sub.add_parser("serve", help="Run the inbound email webhook endpoint")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args(argv)
    try:
        credentials = JsonFileCredentials(args.credentials) if args.credentials else None
        config = configure(credentials=credentials)

        if args.command == "config":
            print(json.dumps(describe(config, mask=not args.reveal), indent=2, default=str))
            return 0

        if args.command == "serve":
            from .ingress import serve

            config.require("postback_secret")
            serve(host=args.host, port=args.port)
            return 0

        with PostageAppClient(config) as client:
            response = client.get_project_info()
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return 2

    if not response.ok:
        logger.error("PostageApp check failed status=%s error=%s", response.status, response.error)
        return 1
    print(json.dumps(response.data, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
