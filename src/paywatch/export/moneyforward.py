#!/usr/bin/env python3
"""
Money Forward ME Exporter

Registers one PaymentEntry through the Money Forward ME "カンタン入力"
manual-entry form, driving Chromium with Playwright.

The sign-in flow may ask for an emailed verification code. The code is
looked up by re-querying the mail source for messages received after the
sign-in started.
"""

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

from ..core.config import ExporterConfig, get_config
from ..core.models import PaymentEntry, RawMessage
from ..mail.client import MailSourceError
from .retry import ExportError

logger = logging.getLogger(__name__)

SIGN_IN_EMAIL_URL = "https://id.moneyforward.com/sign_in/email"
SERVICE_SIGN_IN_URL = "https://moneyforward.com/sign_in"

SUBMIT_BUTTON = "#submitto"
EMAIL_INPUT = "input[type=email]"
PASSWORD_INPUT = "input[type=password]"
OTP_INPUT = "input[autocomplete='one-time-code']"
PASSKEY_REJECT_LINK = 'a[ping="/passkey_promotion/collect?event=passkey_rejected"]'

# Manual entry form
LARGE_CATEGORY_INPUT = "#user_asset_act_large_category_id"
MIDDLE_CATEGORY_INPUT = "#user_asset_act_middle_category_id"
DATE_INPUT = "#js-cf-manual-payment-entry-updated-at"
AMOUNT_INPUT = "#js-cf-manual-payment-entry-amount"
SOURCE_SELECT = "#user_asset_act_sub_account_id_hash"
CONTENT_INPUT = "#js-cf-manual-payment-entry-content"
ENTRY_SUBMIT_BUTTON = "#js-cf-manual-payment-entry-submit-button"

_SET_VALUE_JS = "(el, value) => { el.value = value; }"

_VERIFICATION_CODE = re.compile(r"(?<!\d)(\d{6})(?!\d)")
_TAGS = re.compile(r"<[^>]+>")


def find_verification_code(messages: list[RawMessage]) -> str | None:
    """
    Find the newest six-digit verification code among messages.

    Args:
        messages: Messages received after the sign-in started

    Returns:
        The code, or None if no message contains one
    """
    ordered = sorted(messages, key=lambda m: m.timestamp or 0, reverse=True)
    for message in ordered:
        text = " ".join(part for part in (message.subject, _TAGS.sub(" ", message.html or "")) if part)
        match = _VERIFICATION_CODE.search(text)
        if match:
            return match.group(1)
    return None


class MoneyForwardExporter:
    """
    Async exporter for Money Forward ME.

    Each call signs in with a fresh browser, submits one entry and closes the
    browser. Failures raise and are handled by the retry wrapper.
    """

    def __init__(
        self,
        config: ExporterConfig | None = None,
        mail_source: Any | None = None,
        code_attempts: int = 12,
        code_interval: float = 10.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Args:
            config: Credentials and form defaults; loaded from the application config when omitted
            mail_source: Object with `fetch(since)`; needed only when a verification code is requested
            code_attempts: How many times to re-query the mail source for the code
            code_interval: Seconds between those queries
        """
        self.config = config if config is not None else get_config().exporter
        self.mail_source = mail_source
        self.code_attempts = code_attempts
        self.code_interval = code_interval
        self._sleep = sleep

    async def __call__(self, entry: PaymentEntry) -> None:
        await self.export(entry)

    async def export(self, entry: PaymentEntry) -> None:
        """Sign in and register one payment entry."""
        if not self.config.email or not self.config.password:
            raise ExportError("Money Forward ME credentials are not configured")

        from playwright.async_api import async_playwright

        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(headless=self.config.headless)
            try:
                page = await browser.new_page()
                await self._sign_in(page)
                await self._input_payment(page, entry)
            finally:
                await browser.close()

    async def _sign_in(self, page: Any) -> None:
        started_at = datetime.now(timezone.utc)
        logger.debug("Signing in to Money Forward ME")

        await page.goto(SIGN_IN_EMAIL_URL)
        await page.fill(EMAIL_INPUT, self.config.email or "")
        async with page.expect_navigation():
            await page.click(SUBMIT_BUTTON)

        await page.fill(PASSWORD_INPUT, self.config.password or "")
        async with page.expect_navigation():
            await page.click(SUBMIT_BUTTON)

        if await page.query_selector(OTP_INPUT):
            code = await self._wait_for_verification_code(started_at)
            await page.fill(OTP_INPUT, code)
            async with page.expect_navigation():
                await page.click(SUBMIT_BUTTON)

        await page.goto(SERVICE_SIGN_IN_URL)
        async with page.expect_navigation():
            await page.click(SUBMIT_BUTTON)

        if await page.query_selector(PASSKEY_REJECT_LINK):
            async with page.expect_navigation():
                await page.click(PASSKEY_REJECT_LINK)

    async def _wait_for_verification_code(self, since: datetime) -> str:
        """Poll the mail source until a verification code arrives."""
        if self.mail_source is None:
            raise ExportError("Verification code requested but no mail source is configured")

        for attempt in range(self.code_attempts):
            try:
                messages = await asyncio.to_thread(self.mail_source.fetch, since)
            except MailSourceError as e:
                logger.warning(f"Verification code lookup failed (attempt {attempt + 1}): {e}")
                messages = []

            code = find_verification_code(messages)
            if code:
                logger.info("Verification code received")
                return code

            await self._sleep(self.code_interval)

        raise ExportError(f"No verification code received after {self.code_attempts} attempts")

    async def _input_payment(self, page: Any, entry: PaymentEntry) -> None:
        await page.eval_on_selector(LARGE_CATEGORY_INPUT, _SET_VALUE_JS, entry.large_category)
        await page.eval_on_selector(MIDDLE_CATEGORY_INPUT, _SET_VALUE_JS, entry.middle_category)
        await page.eval_on_selector(DATE_INPUT, _SET_VALUE_JS, entry.date)

        await page.fill(AMOUNT_INPUT, str(entry.amount))
        await page.select_option(SOURCE_SELECT, entry.source)
        if entry.content:
            await page.fill(CONTENT_INPUT, entry.content)

        await page.click(ENTRY_SUBMIT_BUTTON)
        logger.debug(f"Submitted manual entry '{entry.content}'")
