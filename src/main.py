from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

import uvicorn

from api.api import create_app
from config import config

logger = logging.getLogger(__name__)


def main(argv: Sequence[str] | None = None) -> None:
    settings = config()
    parser = argparse.ArgumentParser(description="Serve currency quotes and keep them fresh in the background.")
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    parser.add_argument("--db-file", type=Path, default=settings.db_file)
    parser.add_argument("--log-level", default=settings.log_level)
    parser.add_argument("--no-ingestion", action="store_true", help="serve stored quotes without fetching new ones")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s %(message)s")

    app_settings = settings.model_copy(
        update={
            "host": args.host,
            "port": args.port,
            "db_file": args.db_file,
            "log_level": args.log_level.upper(),
            "ingestion_enabled": settings.ingestion_enabled and not args.no_ingestion,
        }
    )
    logger.info("Using quote store at %s", app_settings.db_file)
    uvicorn.run(create_app(app_settings), host=app_settings.host, port=app_settings.port, log_config=None)


if __name__ == "__main__":
    main()
