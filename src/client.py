"""Telegram user-session client for the saved_messages notification method.

We explicitly manage the client's lifecycle (connect/authorize/disconnect)
so it is obvious when the session is created and when it ends.
"""

from __future__ import annotations

import logging
import os
from getpass import getpass

import qrcode
from telethon import TelegramClient, errors

import settings
from core.errors import ConfigurationError

LOGGER = logging.getLogger(__name__)


def build_client() -> TelegramClient:
    """Create a Telethon client from the API_ID/API_HASH settings.

    The session name defaults to "pagescope", creating a local .session file.
    """

    # Fail fast on missing credentials to avoid an ambiguous login prompt.
    if not settings.API_ID or not settings.API_HASH:
        raise ConfigurationError("Missing API_ID or API_HASH in environment")
    try:
        api_id = int(settings.API_ID)
    except ValueError as exc:
        raise ConfigurationError(f"API_ID must be an integer, got {settings.API_ID!r}") from exc

    LOGGER.info("Initializing Telegram client")
    return TelegramClient(settings.SESSION_NAME, api_id, settings.API_HASH)


def _print_qr(url: str) -> None:
    qr = qrcode.QRCode(border=1)
    qr.add_data(url)
    qr.make(fit=True)
    qr.print_ascii(invert=True)


def _two_factor_password() -> str:
    return os.getenv("2FA") or getpass("2FA password: ")


async def _login_with_qr(client: TelegramClient) -> None:
    qr_login = await client.qr_login()
    _print_qr(qr_login.url)
    await qr_login.wait(timeout=120)


async def _login_with_phone(client: TelegramClient) -> None:
    phone = os.getenv("PHONE") or input("Phone number (international format): ").strip()
    await client.send_code_request(phone)
    code = input("Login code: ").strip()
    await client.sign_in(phone=phone, code=code)


async def authorize(client: TelegramClient) -> None:
    """Log the session in once; later runs reuse the .session file.

    LOGIN_METHOD picks "qr" (default) or "phone".
    """

    if await client.is_user_authorized():
        return

    method = (os.getenv("LOGIN_METHOD") or "qr").strip().lower()
    try:
        if method == "phone":
            await _login_with_phone(client)
        else:
            await _login_with_qr(client)
    except errors.SessionPasswordNeededError:
        await client.sign_in(password=_two_factor_password())

    me = await client.get_me()
    LOGGER.info("Logged in as %s", getattr(me, "first_name", None) or getattr(me, "id", "?"))
