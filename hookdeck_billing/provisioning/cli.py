"""
Command line entry points for provisioning.

Usage:
    upsert-connections dev            # CLI destinations for `hookdeck listen`
    upsert-connections prod           # HTTP destinations under PROD_DESTINATION_URL
    upsert-connections prod --dry-run # print the desired state, touch nothing
    clean-connections                 # interactive teardown
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import List, Optional

import httpx
from dotenv import load_dotenv

from ..observability.logging import configure_logging
from .chargebee import ChargebeeClient
from .cleanup import CleanupReconciler
from .config import CleanupConfig, ConfigError, ProvisioningConfig
from .errors import ProvisioningError
from .hookdeck import HookdeckClient
from .reconciler import Reconciler
from .resources import MODES

logger = logging.getLogger(__name__)


def _mode(value: str) -> str:
    return (value or "").strip().lower()


def _add_verbosity(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    group.add_argument("-q", "--quiet", action="store_true", help="Only warnings and errors")


def _log_level(args: argparse.Namespace) -> str:
    if getattr(args, "verbose", False):
        return "DEBUG"
    if getattr(args, "quiet", False):
        return "WARNING"
    return os.getenv("LOG_LEVEL", "INFO")


def create_setup_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="upsert-connections",
        description="Create or update the Hookdeck source/connections and the Chargebee webhook endpoint",
    )
    parser.add_argument("mode", type=_mode, choices=MODES, help="dev (Hookdeck CLI tunnel) or prod (public HTTP)")
    parser.add_argument("--dry-run", action="store_true", help="Print the desired state without calling any API")
    _add_verbosity(parser)
    return parser


def create_clean_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clean-connections",
        description="Delete the Hookdeck connections, source and destinations created by upsert-connections",
    )
    parser.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    _add_verbosity(parser)
    return parser


def _http_client(timeout: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout)


async def run_setup(config: ProvisioningConfig, dry_run: bool = False) -> int:
    async with _http_client(config.http_timeout_seconds) as http:
        reconciler = Reconciler(
            config,
            HookdeckClient(config.hookdeck_api_key, http, config.hookdeck_api_base),
            ChargebeeClient(config.chargebee_site, config.chargebee_api_key, http, config.chargebee_api_base),
        )
        if dry_run:
            print(json.dumps(reconciler.plan(), indent=2))
            return 0
        result = await reconciler.run()

    print(f"Hookdeck Source URL: {result.source.url}")
    print(f"Chargebee webhook endpoint {result.endpoint.action}: {result.endpoint.endpoint_id}")
    print("All configurations completed successfully!")
    return 0


async def run_cleanup(config: CleanupConfig, assume_yes: bool = False) -> int:
    async with _http_client(config.http_timeout_seconds) as http:
        hookdeck = HookdeckClient(config.hookdeck_api_key, http, config.hookdeck_api_base)
        if assume_yes:
            cleaner = CleanupReconciler(hookdeck, confirm=lambda _question: True)
        else:
            cleaner = CleanupReconciler(hookdeck)
        await cleaner.run()
    print("Complete cleanup finished!")
    return 0


def setup_main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    parser = create_setup_parser()
    args = parser.parse_args(argv)
    configure_logging(level=_log_level(args))

    try:
        config = ProvisioningConfig.from_env(args.mode)
        return asyncio.run(run_setup(config, dry_run=args.dry_run))
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except ProvisioningError as exc:
        logger.error("Setup failed: %s", exc)
        print(f"Error during setup: {exc}", file=sys.stderr)
        return 1


def clean_main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    parser = create_clean_parser()
    args = parser.parse_args(argv)
    configure_logging(level=_log_level(args))

    try:
        config = CleanupConfig.from_env()
        return asyncio.run(run_cleanup(config, assume_yes=args.yes))
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except ProvisioningError as exc:
        logger.error("Cleanup failed: %s", exc)
        print(f"Error during cleanup: {exc}", file=sys.stderr)
        return 1


def main() -> None:
    sys.exit(setup_main())


def clean() -> None:
    sys.exit(clean_main())


if __name__ == "__main__":
    main()
