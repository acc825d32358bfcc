#!/usr/bin/env python3
"""Startup script for the Ijazah Platform API.

This script initializes the record store and runs the FastAPI server.

Created: 2026-10-12
Version: 1.0.0
License: MIT

Example:
    Run with the defaults from .env::

        python -m ijazah_api.run_api

    Or use a different data directory and port::

        python -m ijazah_api.run_api --data-dir /srv/ijazah/data --port 8301
"""

import argparse
import uvicorn

from .api import app, initialize_services
from .config import config
from .exceptions import PlatformConfigError
from .platform_config import load_platform_config


def main():
    """Main entry point for running the API server."""
    parser = argparse.ArgumentParser(
        description="Ijazah Platform API Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run on the default port 8300
  python -m ijazah_api.run_api

  # Run with a custom data directory and seed file
  python -m ijazah_api.run_api --data-dir /srv/ijazah/data --platform-config config/platform.yml
        """
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        default=str(config.DATA_DIR),
        help=f"Record store directory (default: {config.DATA_DIR})"
    )
    parser.add_argument(
        "--platform-config",
        type=str,
        default=None,
        help=f"Platform seed file (default: {config.PLATFORM_CONFIG_FILE})"
    )
    parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="Host to bind to (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8300,
        help="Port to bind to (default: 8300)"
    )

    args = parser.parse_args()

    print(f"Data directory: {args.data_dir}")
    print(f"Server will run on: http://{args.host}:{args.port}")
    print(f"API documentation: http://{args.host}:{args.port}/docs")
    print()

    # Initialize the record store and seed data
    try:
        platform = load_platform_config(args.platform_config)
        initialize_services(args.data_dir, platform)
        print("✓ Services initialized successfully")
        print()
    except PlatformConfigError as e:
        print(f"✗ Failed to initialize services: {e.detail}")
        return 1

    # Run the server
    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
    )

    return 0


if __name__ == "__main__":
    exit(main())
