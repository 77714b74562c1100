"""Application entry point for the pagescope watcher."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import re
from logging.handlers import RotatingFileHandler
from typing import List, Optional, Tuple

from art import tprint

import settings
from adapters.json_state_store import JsonStateStore
from adapters.playwright_renderer import PlaywrightRenderer
from adapters.telegram_bot_notifier import TelegramBotNotifier
from adapters.telegram_notifier import TelegramSavedMessagesNotifier
from client import authorize, build_client
from core.config import BrowserConfig, ScanConfig, compile_pattern
from core.errors import ConfigurationError
from core.ports import NotifierPort
from core.processor import ScanProcessor
from core.rules_engine import Rule, build_rules

NAME = "PAGESCOPE"
FONT = "tarty-1"

EXIT_CONFIG_ERROR = 1

LOGGER = logging.getLogger(__name__)


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: List[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values() -> List[str]:
    if not settings.LOG_REDACT:
        return []
    values = [os.getenv(name) for name in settings.REDACT_ENV_NAMES]
    # Longest first so a secret containing another is masked whole.
    return sorted({value for value in values if value}, key=len, reverse=True)


def _configure_logging() -> None:
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = _RedactingFormatter(_collect_redaction_values(), fmt=fmt, datefmt=datefmt)

    handlers: List[logging.Handler] = []

    if settings.LOG_CONSOLE:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    if settings.LOG_FILE:
        path = settings.LOG_FILE
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=settings.LOG_FILE_MAX_BYTES,
            backupCount=settings.LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)
    # Telethon is chatty at INFO.
    logging.getLogger("telethon").setLevel(max(level, logging.WARNING))


def _build_rules() -> List[Rule]:
    rules = build_rules(settings.KEYWORDS)
    if not rules:
        raise ConfigurationError("KEYWORDS does not contain any usable rule")
    return rules


def _build_scan_config() -> ScanConfig:
    try:
        detail_pattern = compile_pattern(settings.DETAIL_URL_PATTERN)
        waiting_room = (
            compile_pattern(settings.WAITING_ROOM_PATTERN, re.IGNORECASE)
            if settings.WAITING_ROOM_PATTERN
            else None
        )
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc

    return ScanConfig(
        detail_url_pattern=detail_pattern,
        deep_check=settings.DEEP_CHECK,
        force_notify=settings.FORCE_NOTIFY,
        ttl_hours=settings.NOTIFY_TTL_HOURS,
        notify_delay_seconds=settings.NOTIFY_DELAY_SEC,
        waiting_room_pattern=waiting_room,
    )


def _build_browser_config() -> BrowserConfig:
    overrides = {}
    if settings.USER_AGENT:
        overrides["user_agent"] = settings.USER_AGENT
    return BrowserConfig(
        headless=settings.HEADLESS,
        locale=settings.BROWSER_LOCALE,
        nav_attempts=settings.NAV_ATTEMPTS,
        nav_timeout_ms=int(settings.NAV_TIMEOUT_SEC * 1000),
        **overrides,
    )


def _validate_settings() -> None:
    """Fail before any scanning when required identifiers are missing."""

    if settings.CONFIG_ERRORS:
        raise ConfigurationError("; ".join(settings.CONFIG_ERRORS))
    if not settings.URLS:
        raise ConfigurationError("URLS is empty")
    if settings.NOTIFICATION_METHOD == "bot":
        if not settings.TELEGRAM_BOT_TOKEN or not settings.TELEGRAM_CHAT_ID:
            raise ConfigurationError("Missing TELEGRAM_BOT_TOKEN or TELEGRAM_CHAT_ID in environment")
    elif settings.NOTIFICATION_METHOD == "saved_messages":
        if not settings.API_ID or not settings.API_HASH:
            raise ConfigurationError("Missing API_ID or API_HASH in environment")
    else:
        raise ConfigurationError("NOTIFICATION_METHOD must be 'bot' or 'saved_messages'")


async def _build_notifier() -> Tuple[NotifierPort, object]:
    """Select the notification adapter; returns (notifier, telethon client or None)."""

    if settings.NOTIFICATION_METHOD == "bot":
        notifier = TelegramBotNotifier(
            bot_token=settings.TELEGRAM_BOT_TOKEN,
            chat_id=settings.TELEGRAM_CHAT_ID,
        )
        return notifier, None

    client = build_client()
    await client.connect()
    if not await client.is_user_authorized():
        await client.disconnect()
        raise ConfigurationError("Telegram session is not authorized; run 'pagescope login' first")
    return TelegramSavedMessagesNotifier(client, settings.SAVED_MESSAGES_TARGET), client


async def _watch(one_shot: bool) -> None:
    _validate_settings()
    rules = _build_rules()
    scan_config = _build_scan_config()
    logger = logging.getLogger(__name__)
    logger.info("%s rules are loaded: %s", len(rules), ", ".join(rule.label for rule in rules))

    notifier, client = await _build_notifier()
    logger.info("Selected notification method - %s", settings.NOTIFICATION_METHOD)

    processor = ScanProcessor(
        rules=rules,
        store=JsonStateStore(settings.STATE_FILE),
        notifier=notifier,
        renderer=PlaywrightRenderer(_build_browser_config()),
        scan_config=scan_config,
    )

    try:
        await processor.run_cycle(settings.URLS)
        if one_shot:
            return

        logger.info("Watching %s URLs every %ss...", len(settings.URLS), settings.CHECK_INTERVAL_SEC)
        while True:
            await asyncio.sleep(settings.CHECK_INTERVAL_SEC)
            await processor.run_cycle(settings.URLS)
    finally:
        if client is not None:
            await client.disconnect()


async def _login() -> None:
    client = build_client()
    await client.connect()
    try:
        await authorize(client)
    finally:
        await client.disconnect()


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="pagescope")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Scan now, then keep scanning every CHECK_INTERVAL_SEC (unless ONE_SHOT)")
    subparsers.add_parser("once", help="Run a single scan cycle and exit")
    subparsers.add_parser("login", help="Authorize the Telegram session used by saved_messages")

    args = parser.parse_args(argv)

    _print_banner()
    _configure_logging()

    try:
        if args.command == "login":
            asyncio.run(_login())
        else:
            asyncio.run(_watch(one_shot=args.command == "once" or settings.ONE_SHOT))
    except ConfigurationError as exc:
        LOGGER.error("Configuration error: %s", exc)
        raise SystemExit(EXIT_CONFIG_ERROR) from exc
    except KeyboardInterrupt:
        LOGGER.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
