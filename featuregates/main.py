"""
featuregates - Feature Gate Status Reporter
Main Entry Point

Loads settings, configures logging and serves the report over HTTP.
"""

import argparse
import asyncio
import sys
from pathlib import Path

import structlog
from dotenv import load_dotenv

load_dotenv(dotenv_path=Path(".") / ".env", override=False)

from uvicorn import Config, Server

from featuregates import __version__
from featuregates.utils.config import VALID_COMPONENTS, Settings
from featuregates.utils.logging import setup_logging
from featuregates.web.api import create_app

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="featuregates",
        description="Report the feature gate status of an Antrea component",
    )
    parser.add_argument("--config", metavar="PATH", help="Path to settings YAML")
    parser.add_argument("--host", help="Address to listen on")
    parser.add_argument("--port", type=int, help="Port to listen on")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override logging.level",
    )
    parser.add_argument(
        "--component",
        choices=VALID_COMPONENTS,
        help="Report for this component instead of deriving it from the pod",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Settings from YAML/env with command-line overrides applied."""
    settings = Settings.from_yaml(args.config)
    if args.host:
        settings.server.host = args.host
    if args.port:
        settings.server.port = args.port
    if args.log_level:
        settings.logging.level = args.log_level
    if args.component:
        settings.discovery.component = args.component
    settings.validate()
    return settings


async def main(settings: Settings) -> None:
    """Serve the API until interrupted."""
    setup_logging(settings=settings)

    logger.info(
        "Starting featuregates",
        version=__version__,
        host=settings.server.host,
        port=settings.server.port,
        component=settings.discovery.component or "auto",
    )

    app = create_app(settings=settings)
    server = Server(
        Config(
            app,
            host=settings.server.host,
            port=settings.server.port,
            log_config=None,
        )
    )
    await server.serve()


def run():
    """Synchronous entry point with CLI argument parsing."""
    args = build_parser().parse_args()
    try:
        settings = load_settings(args)
    except ValueError as e:
        print(f"featuregates: {e}", file=sys.stderr)
        sys.exit(2)

    try:
        asyncio.run(main(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")


if __name__ == "__main__":
    run()
