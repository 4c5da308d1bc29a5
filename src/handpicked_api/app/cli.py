from __future__ import annotations

import argparse

import uvicorn

from handpicked_api.observability.logging import configure_logging
from handpicked_api.settings import get_settings


def main() -> None:
    configure_logging()
    parser = argparse.ArgumentParser(description="Handpicked storefront API")
    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser("serve", help="Serve the public API")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--workers", type=int, default=1)

    args = parser.parse_args()
    if args.command != "serve":
        parser.print_help()
        return

    # Each worker process holds its own cache and rate-limit tables.
    uvicorn.run(
        "handpicked_api.app.main:app",
        host=args.host,
        port=args.port,
        workers=args.workers,
        log_level=get_settings().log_level.lower(),
    )


if __name__ == "__main__":
    main()
