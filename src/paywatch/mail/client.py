#!/usr/bin/env python3
"""
Testmail Client Module

Thin wrapper around the testmail.app JSON API. Rakuten Pay notification
emails are forwarded to a testmail namespace; this client pulls every email
received within a time window.

Transport failures (network errors, non-success HTTP status, a "fail"
envelope) raise MailSourceError so that callers can tell them apart from an
empty inbox.

https://testmail.app/docs/#json-api-guide
"""

import logging
from datetime import datetime
from typing import Any

import requests

from ..core.config import MailSourceConfig, get_config
from ..core.models import RawMessage

logger = logging.getLogger(__name__)


class MailSourceError(Exception):
    """Raised when the mail source cannot be reached or reports failure."""


class TestmailClient:
    """Client for the testmail.app JSON API."""

    # Keep pytest from collecting this class
    __test__ = False

    def __init__(self, config: MailSourceConfig | None = None, session: requests.Session | None = None):
        """
        Initialize Testmail client.

        Args:
            config: Inbox configuration; loaded from the application config when omitted
            session: Optional requests session (shared connection pool, test stubbing)
        """
        self.config = config if config is not None else get_config().mail
        self.session = session or requests.Session()

    def _build_params(self, since: datetime | None, until: datetime | None, offset: int = 0) -> dict[str, str]:
        params = {
            "apikey": self.config.api_key or "",
            "namespace": self.config.namespace or "",
            "limit": str(self.config.limit),
            "offset": str(offset),
        }
        if self.config.tag:
            params["tag"] = self.config.tag
        if since is not None:
            params["timestamp_from"] = str(_to_millis(since))
        if until is not None:
            # timestamp_to is inclusive; the window is [since, until)
            params["timestamp_to"] = str(_to_millis(until) - 1)
        return params

    def fetch(self, since: datetime | None = None, until: datetime | None = None) -> list[RawMessage]:
        """
        Fetch all emails received in the window [since, until).

        Pages through the result with `offset` until the reported `count` has
        been read.

        Args:
            since: Lower bound on the receive time; None fetches from the beginning
            until: Exclusive upper bound on the receive time; None means no bound

        Returns:
            List of RawMessage objects, possibly empty

        Raises:
            MailSourceError: On network errors, HTTP errors, a "fail" envelope
                or when the pages run out before `count` emails were read
        """
        messages: list[RawMessage] = []

        while True:
            payload = self._request(self._build_params(since, until, offset=len(messages)))
            emails = payload.get("emails") or []
            messages.extend(self._to_raw_message(email_obj) for email_obj in emails)

            count = payload.get("count")
            logger.debug(f"Fetched {len(emails)} emails (offset={len(messages) - len(emails)}, count={count})")

            if count is None:
                if len(emails) < self.config.limit:
                    break
            elif len(messages) >= count:
                break
            elif not emails:
                raise MailSourceError(f"Mail source reported {count} emails but returned only {len(messages)}")

        return messages

    def _request(self, params: dict[str, str]) -> dict[str, Any]:
        """Perform one API request and return the decoded envelope."""
        try:
            response = self.session.get(self.config.base_url, params=params, timeout=self.config.timeout)
        except requests.RequestException as e:
            raise MailSourceError(f"Mail request failed: {e}") from e

        if not response.ok:
            raise MailSourceError(f"Mail request failed: {response.status_code} - {response.reason}")

        try:
            payload = response.json()
        except ValueError as e:
            raise MailSourceError(f"Mail response is not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise MailSourceError(f"Unexpected mail response: {type(payload).__name__}")

        if payload.get("result") == "fail":
            raise MailSourceError(f"Mail request failed: {response.status_code} - {payload.get('message')}")

        return payload

    def _to_raw_message(self, email_obj: dict[str, Any]) -> RawMessage:
        """Convert a testmail email object into a RawMessage."""
        return RawMessage(
            id=str(email_obj.get("id", "")),
            html=email_obj.get("html") or None,
            reference_url=email_obj.get("downloadUrl", ""),
            subject=email_obj.get("subject"),
            timestamp=email_obj.get("timestamp"),
        )


def _to_millis(value: datetime) -> int:
    return int(value.timestamp() * 1000)
