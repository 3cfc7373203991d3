"""
Main application entry point for Alert Docgen.

This module provides the command-line interface that configures and runs the
HTTP server.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import structlog
import uvicorn

from . import __version__
from .config import Config
from .logging_config import configure_logging
from .webhook import create_app


logger = structlog.get_logger(__name__)


def build_parser(config: Config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Alert Docgen - Datadog alert documentation generator"
    )
    parser.add_argument(
        "--host",
        default=config.host,
        help="Server host (default: %(default)s)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=config.port,
        help="Server port (default: %(default)s)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        default=config.log_level.upper(),
        help="Log level (default: %(default)s)"
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=config.data_dir,
        help="Directory for templates, documents and alerts (default: %(default)s)"
    )
    parser.add_argument(
        "--dedup-window",
        type=int,
        default=config.dedup_window_seconds,
        help="Alert dedup window in seconds (default: %(default)s)"
    )
    return parser


def apply_args(config: Config, args: argparse.Namespace) -> Config:
    """Overlay command-line arguments on the environment configuration."""
    return config.model_copy(update={
        "host": args.host,
        "port": args.port,
        "log_level": args.log_level,
        "data_dir": args.data_dir,
        "dedup_window_seconds": args.dedup_window,
    })


def cli(argv: Optional[List[str]] = None):
    """Command-line interface entry point."""
    config = Config()
    args = build_parser(config).parse_args(argv)

    if args.dedup_window <= 0:
        print("--dedup-window must be positive", file=sys.stderr)
        sys.exit(2)

    config = apply_args(config, args)
    configure_logging(config.log_level)

    logger.info(
        "Starting Alert Docgen",
        version=__version__,
        host=config.host,
        port=config.port,
        data_dir=str(config.data_dir)
    )

    try:
        app = create_app(config)
        uvicorn.run(
            app,
            host=config.host,
            port=config.port,
            log_level=config.log_level.lower(),
            access_log=True
        )
    except KeyboardInterrupt:
        print("\nApplication interrupted by user")
    except Exception as e:
        logger.error("Application failed", error=str(e), exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
