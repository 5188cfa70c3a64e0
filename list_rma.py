#!/usr/bin/env python3
"""
Via API sample - list RMA tickets

Reads connection settings from the environment (or .env), prints the API
version and the RMA ticket list. Exits non-zero if any call failed.
"""
import asyncio
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Optional, Tuple

from api.client import ViaClient
from config import ViaConfig, get_config
from exceptions import ConfigurationException, ErrorKind, ViaClientError
from utils.logging import JSONFormatter, clear_context, get_contextual_logger, set_request_context

VERSION_ENDPOINT = "version"
RMA_ENDPOINT = "/core/bms/rma/tickets/rmas/V3"

logger = get_contextual_logger('via_client.list_rma')


def setup_logging(config: Optional[ViaConfig] = None) -> logging.Logger:
    """Configure hybrid logging: human-readable console + structured JSON files."""
    config = config or get_config()
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    os.makedirs(config.log_dir, exist_ok=True)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    ))

    json_handler = RotatingFileHandler(
        os.path.join(config.log_dir, 'via_client.json'),
        maxBytes=5 * 1024 * 1024,  # 5MB
        backupCount=5
    )
    json_handler.setFormatter(JSONFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if not root_logger.handlers:  # Avoid duplicate handlers
        root_logger.addHandler(console_handler)
        root_logger.addHandler(json_handler)

    return root_logger


async def fetch(client: ViaClient, endpoint: str) -> Tuple[bool, Optional[Any]]:
    """
    GET an endpoint, logging failures by kind.

    Returns:
        Tuple of (succeeded, decoded body)
    """
    set_request_context(endpoint=endpoint)
    try:
        return True, await client.get(endpoint)
    except ViaClientError as e:
        if e.kind is ErrorKind.AUTHENTICATION:
            logger.error(f"Authentication Error: {e.message}", error=e)
        else:
            logger.error(f"API Request Error: {e.message}", error=e)
        return False, None


async def main(config: Optional[ViaConfig] = None) -> int:
    """Run the sample and return the process exit code."""
    config = config or get_config()

    set_request_context(account=config.account_name, base_url=config.via_url, email=config.via_account_email)
    logger.info(f"VIA_URL: {config.via_url}")
    logger.info(f"VIA_ACCOUNT_EMAIL: {config.via_account_email}")

    if not config.has_credentials:
        logger.error("Configuration Error: VIA_URL, VIA_TOKEN and VIA_ACCOUNT_EMAIL must be set")
        clear_context()
        return 2

    try:
        client = ViaClient(config.via_url, config.via_token, config.via_account_email)
    except ConfigurationException as e:
        logger.error(f"Configuration Error: {e}", error=e)
        clear_context()
        return 2

    trace_id = logger.start_operation('list_rma')

    async with client:
        version_ok, info = await fetch(client, VERSION_ENDPOINT)
        if version_ok:
            logger.info(f"Version info: {info}")

        rmas_ok, rmas = await fetch(client, RMA_ENDPOINT)
        if rmas_ok:
            logger.info(f"RMAs: {rmas}")

    failed = not (version_ok and rmas_ok)
    logger.end_operation(trace_id, "failed" if failed else "completed")
    clear_context()
    return 1 if failed else 0


def run() -> None:
    """Console script entry point."""
    setup_logging()
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
