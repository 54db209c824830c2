#!/usr/bin/env python3
"""
gqlcache - Server Runner

Starts the caching GraphQL gateway with uvicorn using the environment
configuration (HOST, PORT, BACKEND_GRAPHQL_URL, REDIS_URL, ...).
"""

import logging
import sys

import uvicorn

from gqlcache.config import load_config
from gqlcache.errors import ConfigurationError
from gqlcache.server import create_app


def main() -> None:
    """Run the gqlcache gateway."""
    try:
        config = load_config()
    except ConfigurationError as e:
        print(f"Invalid configuration: {e.message}", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level=str(config.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        uvicorn.run(create_app(config), host=config.server.host, port=config.server.port)
    except KeyboardInterrupt:
        print("\nServer stopped.")


if __name__ == "__main__":
    main()
