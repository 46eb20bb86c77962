# start_app.py
"""Launch the POS core API server."""

from __future__ import annotations

import argparse
import os
import sys

import uvicorn
from dotenv import load_dotenv

import config


def main(argv: list[str] | None = None) -> None:
    """Load settings from ``.env`` and the environment, then start the API."""

    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--sqlite",
        action="store_true",
        help="Persist to a local SQLite file instead of the in-memory store",
    )
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    args = parser.parse_args(argv)

    load_dotenv()  # load environment variables from a .env file

    if args.sqlite:
        os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./poscore.db")

    config.get_settings.cache_clear()
    config.get_settings()  # fail fast on malformed settings

    try:
        uvicorn.run(
            "poscore.app.main:create_app_from_env",
            factory=True,
            host="0.0.0.0",  # nosec B104: bind for local development
            port=int(os.getenv("PORT", "8000")),
            log_level="info",
            reload=args.reload,
        )
    except ModuleNotFoundError as exc:
        missing = exc.name or str(exc)
        print(
            f"Missing dependency: {missing}. Install it with 'pip install {missing}'",
            file=sys.stderr,
        )
        raise SystemExit(1)


if __name__ == "__main__":
    main()
