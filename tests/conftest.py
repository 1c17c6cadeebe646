"""
Pytest Configuration and Shared Fixtures

Provides common test fixtures and configuration for the entire test suite.
"""

from pathlib import Path

import pytest

from paywatch.core.models import RawMessage, TransactionRecord


@pytest.fixture
def fixtures_dir() -> Path:
    """Directory holding saved Rakuten Pay email bodies."""
    return Path(__file__).parent / "fixtures" / "rakuten"


@pytest.fixture
def payment_notice_html(fixtures_dir) -> str:
    return (fixtures_dir / "payment_notice.html").read_text(encoding="utf-8")


@pytest.fixture
def payment_notice_legacy_html(fixtures_dir) -> str:
    return (fixtures_dir / "payment_notice_legacy.html").read_text(encoding="utf-8")


@pytest.fixture
def order_confirmation_html(fixtures_dir) -> str:
    return (fixtures_dir / "order_confirmation.html").read_text(encoding="utf-8")


@pytest.fixture
def sample_record() -> TransactionRecord:
    """Valid record paid with points, Rakuten Cash and card."""
    return TransactionRecord(
        date="2024/03/10",
        merchant="ローソン 渋谷店",
        total_amount=1500,
        points_used=700,
        cash_used=300,
        card_used=500,
        template="payment_notice",
        message_id="msg-001",
        reference_url="https://example.test/msg-001.eml",
    )


@pytest.fixture
def make_message():
    """Factory for RawMessage objects."""

    def _make(message_id: str, html: str | None, timestamp: int | None = None) -> RawMessage:
        return RawMessage(
            id=message_id,
            html=html,
            reference_url=f"https://example.test/{message_id}.eml",
            timestamp=timestamp,
        )

    return _make


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Set up test environment variables."""
    # Ensure tests never reach real services
    monkeypatch.setenv("PAYWATCH_ENV", "test")
    monkeypatch.setenv("TESTMAIL_API_KEY", "test-key")
    monkeypatch.setenv("TESTMAIL_NAMESPACE", "test-namespace")
    monkeypatch.delenv("TESTMAIL_TAG", raising=False)
    monkeypatch.delenv("MONEY_FORWARD_EMAIL", raising=False)
    monkeypatch.delenv("MONEY_FORWARD_PW", raising=False)
    monkeypatch.delenv("POLL_INTERVAL_SECONDS", raising=False)
    monkeypatch.delenv("RETRY_DELAY_SECONDS", raising=False)

    # Drop any cached configuration between tests
    monkeypatch.setattr("paywatch.core.config._config", None)


# Test markers for categorizing tests
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for complete workflows")
    config.addinivalue_line("markers", "mail: Tests for mail fetching and parsing")
    config.addinivalue_line("markers", "watcher: Tests for polling, scheduling and dispatch")
    config.addinivalue_line("markers", "export: Tests for payment export")
