"""Unit tests for record validation and payment entry derivation."""

import pytest

from paywatch.core.models import (
    PaymentDefaults,
    TransactionRecord,
    build_payment_entries,
    is_consistent_record,
    is_valid_record,
    validate_record,
)


def _record(**overrides) -> TransactionRecord:
    values = {
        "date": "2024/01/15",
        "merchant": "Store A",
        "total_amount": 1500,
        "points_used": 1000,
        "cash_used": 0,
        "card_used": 500,
    }
    values.update(overrides)
    return TransactionRecord(**values)


@pytest.mark.unit
class TestRecordValidation:
    def test_valid_points_and_card_record(self):
        record = _record()
        assert is_valid_record(record)
        assert validate_record(record) == []

    @pytest.mark.parametrize(
        ("overrides", "message"),
        [
            ({"date": ""}, "date is empty"),
            ({"merchant": ""}, "merchant is empty"),
            ({"total_amount": 0, "points_used": 0, "card_used": 0}, "total amount is zero"),
            ({"card_used": 400}, "total 1500 != points 1000 + cash 0 + card 400"),
        ],
    )
    def test_rejects_broken_records(self, overrides, message):
        record = _record(**overrides)
        assert not is_valid_record(record)
        assert message in validate_record(record)

    def test_pure_card_record_is_consistent_but_not_forwarded(self):
        record = _record(points_used=0, cash_used=0, card_used=1500)

        assert is_consistent_record(record)
        assert not is_valid_record(record)
        assert validate_record(record) == ["no point or cash usage"]

    def test_partially_matched_template_is_rejected(self):
        # Card label found, its value lookup failed
        record = _record(card_used=0)
        assert not is_consistent_record(record)
        assert not is_valid_record(record)

    def test_metadata_does_not_affect_validation(self):
        record = _record(template=None, message_id=None, reference_url=None)
        assert is_valid_record(record)


@pytest.mark.unit
class TestBuildPaymentEntries:
    def test_points_and_cash_yield_two_entries(self, sample_record):
        entries = build_payment_entries(sample_record)

        assert len(entries) == 2
        points, cash = entries
        assert points.amount == 700
        assert points.content == "ローソン 渋谷店 楽天ポイント利用"
        assert cash.amount == 300
        assert cash.content == "ローソン 渋谷店 楽天キャッシュ利用"
        assert all(entry.date == "2024/03/10" for entry in entries)
        assert all(entry.record is sample_record for entry in entries)

    def test_points_only_yields_one_entry(self):
        entries = build_payment_entries(_record())
        assert [entry.amount for entry in entries] == [1000]

    def test_card_only_yields_no_entries(self):
        assert build_payment_entries(_record(points_used=0, card_used=1500)) == []

    def test_defaults_are_applied(self):
        defaults = PaymentDefaults(large_category="11", middle_category="42", source="abc")
        (entry,) = build_payment_entries(_record(), defaults)

        assert entry.large_category == "11"
        assert entry.middle_category == "42"
        assert entry.source == "abc"
        assert entry.to_dict()["source"] == "abc"
