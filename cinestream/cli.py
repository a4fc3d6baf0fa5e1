from __future__ import annotations

import argparse

from loguru import logger

from cinestream.config import CINESTREAM_HOST, CINESTREAM_RELOAD, PORT


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="cinestream", description="Run the cinestream streaming proxy."
    )
    parser.add_argument("--host", default=CINESTREAM_HOST, help="bind address")
    parser.add_argument("--port", type=int, default=PORT, help="listening port")
    parser.add_argument(
        "--reload",
        action=argparse.BooleanOptionalAction,
        default=CINESTREAM_RELOAD,
        help="auto-reload on code changes (development)",
    )
    return parser.parse_args(argv)


def run_server(argv: list[str] | None = None) -> None:
    """Run the Uvicorn server.

    Reload needs an import string so the reloader can re-import the app;
    otherwise the app object is passed directly.
    """
    import uvicorn

    args = parse_args(argv)
    logger.info(f"Starting cinestream on http://{args.host}:{args.port}")
    if args.reload:
        logger.info("Uvicorn reload enabled (development mode).")
        uvicorn.run("cinestream.main:app", host=args.host, port=args.port, reload=True)
        return

    from cinestream.main import app

    uvicorn.run(app, host=args.host, port=args.port, reload=False)
