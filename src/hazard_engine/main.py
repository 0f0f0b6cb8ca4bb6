"""Entrypoint: run the Hazard Similarity Engine server."""

import argparse

import uvicorn

from hazard_engine.api.app import create_app
from hazard_engine.config.settings import Settings


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Hazard report similarity and clustering service")
    parser.add_argument("--host", help="Bind address (default: HAZARD_HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Bind port (default: HAZARD_PORT or 8000)")
    parser.add_argument("--db-path", help="SQLite database file (default: HAZARD_SQLITE_DB_PATH)")
    parser.add_argument("--log-level", help="Log level (default: HAZARD_LOG_LEVEL or INFO)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    overrides = {
        "host": args.host,
        "port": args.port,
        "sqlite_db_path": args.db_path,
        "log_level": args.log_level,
    }
    settings = Settings(**{k: v for k, v in overrides.items() if v is not None})
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
