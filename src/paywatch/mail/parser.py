#!/usr/bin/env python3
"""
Rakuten Pay Email Parser Module

Extracts a TransactionRecord from the HTML body of a Rakuten Pay
notification email. Two template families are supported:

- payment_notice: "楽天ペイアプリご利用内容確認メール". Label and value sit in
  adjacent cells of the same row.
- order_confirmation: the online order template. Labels sit in a header row
  and the value in the matching cell of the row below.

Each family is tried as an independent, side-effect-free attempt against
the same tree and the best attempt wins. The only shared label,
ポイント/キャッシュ利用, is read by each family from its own value position.
Parsing never raises; unknown markup yields an empty record.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from bs4 import BeautifulSoup, Tag

from ..core.currency import parse_yen_amount
from ..core.dates import normalize_date
from ..core.models import TransactionRecord

logger = logging.getLogger(__name__)

CELL_TAGS = ["td", "th"]

# Trailing colons printed after labels in the newer layouts
_LABEL_DECORATION = re.compile(r"[：:]+$")
_WHITESPACE = re.compile(r"\s+")


def _cell_text(tag: Tag | None) -> str:
    if tag is None:
        return ""
    return _WHITESPACE.sub(" ", tag.get_text(separator=" ", strip=True)).strip()


def _normalize_label(text: str) -> str:
    return _LABEL_DECORATION.sub("", text.strip()).strip()


def _next_cell(cell: Tag) -> Tag | None:
    """Value in the adjacent cell of the same row."""
    return cell.find_next_sibling(CELL_TAGS)


def _cell_below(cell: Tag) -> Tag | None:
    """Value in the row following the label's row, at the same column when possible."""
    row = cell.parent
    if row is None:
        return None
    next_row = row.find_next_sibling()
    if next_row is None:
        return None

    cells = next_row.find_all(CELL_TAGS, recursive=False)
    if not cells:
        return next_row

    row_cells = row.find_all(CELL_TAGS, recursive=False)
    column = next((i for i, candidate in enumerate(row_cells) if candidate is cell), 0)
    return cells[column] if column < len(cells) else cells[0]


@dataclass(frozen=True)
class TemplateFamily:
    """A label vocabulary and where its values live relative to the label."""

    name: str
    labels: dict[str, str]
    locate_value: Callable[[Tag], Tag | None]


PAYMENT_NOTICE = TemplateFamily(
    name="payment_notice",
    labels={
        "ご利用日時": "date",
        "ご利用店舗": "merchant",
        "決済総額": "total",
        "ポイント利用": "points",
        # Older single-row layout, e.g. "-P1,000"
        "ポイント/キャッシュ利用": "points",
        "楽天キャッシュ利用": "cash",
        "お支払金額": "card",
    },
    locate_value=_next_cell,
)

ORDER_CONFIRMATION = TemplateFamily(
    name="order_confirmation",
    labels={
        "注文日": "date",
        "商品名": "item",
        "注文金額": "total",
        "ポイント/キャッシュ利用": "points",
        "お支払い金額": "card",
        "ご利用サイト": "site",
    },
    locate_value=_cell_below,
)

TEMPLATE_FAMILIES = (PAYMENT_NOTICE, ORDER_CONFIRMATION)


class RakutenPayParser:
    """
    Multi-template parser for Rakuten Pay notification emails.

    Each template family is matched independently; the first family whose
    attempt is structurally complete (date, merchant and total present) is
    used, otherwise the first partial attempt.
    """

    def __init__(self, families: tuple[TemplateFamily, ...] = TEMPLATE_FAMILIES):
        self.families = families

    def parse_html_content(
        self,
        html_content: str,
        message_id: str | None = None,
        reference_url: str | None = None,
    ) -> TransactionRecord:
        """
        Parse HTML content into a TransactionRecord.

        Args:
            html_content: Raw HTML body of the email
            message_id: Identifier of the source message, kept for diagnostics
            reference_url: Link to the raw message, kept for diagnostics

        Returns:
            TransactionRecord; all fields empty when no template matched
        """
        try:
            soup = BeautifulSoup(html_content, "lxml")
        except Exception as e:
            logger.warning(f"Could not parse markup of {reference_url or message_id}: {e}")
            soup = None

        attempts = [] if soup is None else [self._attempt(soup, family) for family in self.families]
        matched = [record for record in attempts if record is not None]

        complete = [r for r in matched if r.date and r.merchant and r.total_amount]
        record = (complete or matched or [TransactionRecord()])[0]

        record.message_id = message_id
        record.reference_url = reference_url

        if record.template is None:
            logger.warning(f"Could not parse email: {reference_url or message_id or 'unknown'}")
        else:
            logger.debug(f"Detected template: {record.template}")

        return record

    def _attempt(self, soup: BeautifulSoup, family: TemplateFamily) -> TransactionRecord | None:
        """Run one family's labels against the tree. Returns None when none matched."""
        values: dict[str, str] = {}

        for cell in soup.find_all(CELL_TAGS):
            field_name = family.labels.get(_normalize_label(_cell_text(cell)))
            if field_name is None or field_name in values:
                continue
            value_cell = family.locate_value(cell)
            if value_cell is None:
                continue
            values[field_name] = _cell_text(value_cell)

        if not values:
            return None

        merchant = values.get("merchant", "")
        if "item" in values or "site" in values:
            merchant = " ".join(part for part in (values.get("site", ""), values.get("item", "")) if part)

        return TransactionRecord(
            date=normalize_date(values.get("date")),
            merchant=merchant,
            total_amount=parse_yen_amount(values.get("total")),
            points_used=parse_yen_amount(values.get("points")),
            cash_used=parse_yen_amount(values.get("cash")),
            card_used=parse_yen_amount(values.get("card")),
            template=family.name,
        )


_default_parser = RakutenPayParser()


def extract(markup: str) -> TransactionRecord:
    """Extract a TransactionRecord from raw markup using the default template families."""
    return _default_parser.parse_html_content(markup)
