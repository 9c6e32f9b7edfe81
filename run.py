#!/usr/bin/env python3
"""Startup script for the Roblox inventory API."""

import sys
import logging

from roblox_inventory.config import config

# Configure logging before imports
handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
if config.log_file:
    handlers.append(logging.FileHandler(config.log_file, encoding="utf-8"))

logging.basicConfig(
    level=getattr(logging, config.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=handlers,
)
logger = logging.getLogger("roblox_inventory")


def main() -> int:
    """Main entry point."""
    logger.info("Starting inventory API...")

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Config error: {error}")
        logger.error("Please check your .env file")
        return 1

    logger.info("Configuration validated")
    logger.info(f"Classify policy: {config.classify_policy.value}")
    logger.info(f"Asset type groups: {config.asset_type_groups}")
    logger.info(f"Max attempts per page: {config.max_attempts}")
    logger.info(f"Page cap: {config.max_pages or 'none'}")

    from aiohttp import web

    from roblox_inventory.api.server import create_app

    logger.info(f"API running on http://localhost:{config.port}")
    logger.info(f"Health check: http://localhost:{config.port}/health")
    logger.info(
        f"Example usage: http://localhost:{config.port}/inventory/231649154?filter=all&sortBy=value"
    )

    try:
        web.run_app(create_app(), host=config.host, port=config.port, print=None)
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
