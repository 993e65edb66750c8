"""Entry point for the SafeDrop server.

Usage:
    python -m safedrop [options]

Options:
    --host HOST                 Bind address (default: SAFEDROP_HOST or 0.0.0.0)
    --port PORT                 Listen port (default: PORT or 8080)
    --max-body-bytes N          Largest accepted request body (default: 32768)
    --static-dir DIR            Client files, index.html included (default: ./static)
    --sweep-interval SECS       Evict expired safes periodically, 0 disables (default: 0)
    --log-dir DIR               Also write logs to files in DIR
"""

import argparse
import sys

import uvicorn

from .config import ConfigurationError, ServerConfig
from .logging import get_logger, setup_logging
from .main import create_app

logger = get_logger("main")


def parse_args(argv=None) -> ServerConfig:
    parser = argparse.ArgumentParser(description="SafeDrop secret escrow server")
    parser.add_argument("--host", default="", help="Bind address")
    parser.add_argument("--port", type=int, default=None, help="Listen port")
    parser.add_argument(
        "--max-body-bytes", type=int, default=None, help="Largest accepted request body"
    )
    parser.add_argument("--static-dir", default="", help="Directory with the client files")
    parser.add_argument(
        "--sweep-interval", type=int, default=None, help="Seconds between expiry sweeps (0 = off)"
    )
    parser.add_argument("--log-dir", default="", help="Directory for log files")

    args = parser.parse_args(argv)

    return ServerConfig(
        host=args.host,
        port=args.port,
        max_body_bytes=args.max_body_bytes,
        static_dir=args.static_dir,
        sweep_interval=args.sweep_interval,
        log_dir=args.log_dir,
    )


def main(argv=None):
    try:
        config = parse_args(argv)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    if config.log_dir:
        setup_logging(config.log_dir)

    logger.info("SafeDrop starting")
    logger.info(f"  Listen:     {config.host}:{config.port}")
    logger.info(f"  Body limit: {config.max_body_bytes} bytes")
    logger.info(f"  Static dir: {config.static_dir}")

    app = create_app(config)
    uvicorn.run(app, host=config.host, port=config.port, log_level="warning")


if __name__ == "__main__":
    main()
