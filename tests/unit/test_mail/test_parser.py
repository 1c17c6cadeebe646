"""Unit tests for the two-template Rakuten Pay extractor."""

import logging

import pytest

from paywatch.core.models import is_consistent_record, is_valid_record
from paywatch.mail.parser import RakutenPayParser, extract
from tests.fixtures.rakuten.samples import (
    POINTS_AND_CASH_NOTICE,
    PURE_CARD_NOTICE,
    UNRELATED_HTML,
    order_confirmation,
    payment_notice,
)


@pytest.fixture
def parser():
    """Create a parser instance for testing."""
    return RakutenPayParser()


@pytest.mark.unit
@pytest.mark.mail
class TestPaymentNotice:
    def test_extracts_points_and_card(self, parser, payment_notice_html):
        record = parser.parse_html_content(payment_notice_html, "msg-1", "https://example.test/msg-1.eml")

        assert record.template == "payment_notice"
        assert record.date == "2024/01/15"
        assert record.merchant == "Store A"
        assert record.total_amount == 1500
        assert record.points_used == 1000
        assert record.cash_used == 0
        assert record.card_used == 500
        assert record.message_id == "msg-1"
        assert record.reference_url == "https://example.test/msg-1.eml"
        assert is_valid_record(record)

    def test_extracts_cash(self):
        record = extract(POINTS_AND_CASH_NOTICE)

        assert record.points_used == 700
        assert record.cash_used == 300
        assert record.card_used == 500
        assert is_valid_record(record)

    def test_pure_card_is_consistent_but_not_valid(self):
        record = extract(PURE_CARD_NOTICE)

        assert record.total_amount == 1500
        assert record.card_used == 1500
        assert is_consistent_record(record)
        assert not is_valid_record(record)

    def test_trailing_colon_on_label(self):
        html = "<table><tr><td>ご利用店舗：</td><td>Store C</td></tr></table>"
        assert extract(html).merchant == "Store C"

    def test_missing_value_cell_gives_empty_field(self):
        html = payment_notice(date="2024/01/15", merchant="Store A", total="¥1,500", points="-1,000P")
        html = html.replace("</table>", "<tr><td>お支払金額</td></tr></table>")

        record = extract(html)

        assert record.card_used == 0
        assert not is_valid_record(record)

    def test_single_row_layout_with_combined_point_label(self, parser, payment_notice_legacy_html):
        record = parser.parse_html_content(payment_notice_legacy_html)

        assert record.template == "payment_notice"
        assert record.date == "2023/11/02"
        assert record.total_amount == 1500
        assert record.points_used == 1000
        assert record.card_used == 500
        assert is_valid_record(record)


@pytest.mark.unit
@pytest.mark.mail
class TestOrderConfirmation:
    def test_extracts_stacked_layout_with_site(self, parser, order_confirmation_html):
        record = parser.parse_html_content(order_confirmation_html)

        assert record.template == "order_confirmation"
        assert record.date == "2024/02/03"
        assert record.merchant == "楽天ブックス Python入門"
        assert record.total_amount == 3200
        assert record.points_used == 1200
        assert record.cash_used == 0
        assert record.card_used == 2000
        assert is_valid_record(record)

    def test_item_without_site(self):
        record = extract(order_confirmation(date="2024/02/03", item="Python入門", total="¥800", points="800"))

        assert record.merchant == "Python入門"
        assert is_valid_record(record)

    def test_site_is_prepended_even_when_listed_after_item(self):
        record = extract(order_confirmation(item="Python入門", site="楽天ブックス"))
        assert record.merchant == "楽天ブックス Python入門"

    def test_multi_column_header_row(self):
        html = (
            "<table>"
            "<tr><th>注文日</th><th>注文金額</th><th>ポイント/キャッシュ利用</th></tr>"
            "<tr><td>2024/02/03</td><td>¥3,200</td><td>3,200</td></tr>"
            "<tr><th>商品名</th></tr>"
            "<tr><td>Python入門</td></tr>"
            "</table>"
        )
        record = extract(html)

        assert record.date == "2024/02/03"
        assert record.total_amount == 3200
        assert record.points_used == 3200
        assert is_valid_record(record)


@pytest.mark.unit
@pytest.mark.mail
class TestUnrecognisedMarkup:
    @pytest.mark.parametrize("html", [UNRELATED_HTML, "", "<p>not a table</p>", "<<<>>>"])
    def test_never_raises_and_returns_empty_record(self, html):
        record = extract(html)

        assert record.template is None
        assert record.date == ""
        assert record.merchant == ""
        assert record.total_amount == 0
        assert not is_valid_record(record)

    def test_logs_could_not_parse(self, parser, caplog):
        with caplog.at_level(logging.WARNING, logger="paywatch.mail.parser"):
            parser.parse_html_content(UNRELATED_HTML, "msg-9", "https://example.test/msg-9.eml")

        assert "Could not parse email: https://example.test/msg-9.eml" in caplog.text


@pytest.mark.unit
@pytest.mark.mail
@pytest.mark.parametrize(
    "html",
    [
        POINTS_AND_CASH_NOTICE,
        PURE_CARD_NOTICE,
        payment_notice(date="2024/05/01", merchant="Store D", total="¥2,000", points="-2,000P"),
        order_confirmation(site="楽天市場", date="2024/05/02", item="タオル", total="1,000円", points="400", card="600円"),
    ],
)
def test_recognised_records_satisfy_conservation(html):
    record = extract(html)

    assert record.template is not None
    assert record.total_amount == record.points_used + record.cash_used + record.card_used
