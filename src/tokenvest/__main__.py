from __future__ import annotations

import argparse
import logging

import uvicorn

from tokenvest.config import LOG_LEVELS, load_settings


def main(argv: list[str] | None = None) -> None:
    """Console entry point: serve the vesting schedule API.

    Defaults come from TOKENVEST_* environment variables (see
    `tokenvest.config`); flags override them. Reload is off by default.
    """
    settings = load_settings()
    parser = argparse.ArgumentParser(
        prog="tokenvest", description="Serve the token vesting schedule API"
    )
    parser.add_argument("--host", default=settings.host, help=f"Bind address (default: {settings.host})")
    parser.add_argument("--port", type=int, default=settings.port, help=f"Port (default: {settings.port})")
    parser.add_argument(
        "--reload",
        dest="reload",
        action="store_true",
        default=False,
        help="Enable auto-reload",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        choices=LOG_LEVELS,
        help=f"Log level (default: {settings.log_level})",
    )
    args = parser.parse_args(argv)

    # "trace" is uvicorn-only; stdlib logging tops out at DEBUG
    level = "DEBUG" if args.log_level == "trace" else args.log_level.upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    uvicorn.run(
        "tokenvest.web.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
