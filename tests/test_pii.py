import pytest

from core.pii import detect_sensitive_data


@pytest.mark.parametrize(
    "text",
    [
        "SSN: 123-45-6789",
        "card 4111 1111 1111 1111 on file",
        "card 4111-1111-1111-1111",
    ],
)
def test_flags_identity_and_card_numbers(text: str) -> None:
    assert detect_sensitive_data(text)


@pytest.mark.parametrize(
    "text",
    [
        "Call me at 555-123-4567",
        "jane@example.com, Berlin",
        "Order 1234 5678 9012 3456",  # fails the Luhn check
        "2019 - 2021",
    ],
)
def test_ignores_ordinary_resume_content(text: str) -> None:
    assert detect_sensitive_data(text) == []


def test_reports_each_category_once() -> None:
    text = "123-45-6789 4111111111111111 4111111111111111"
    assert detect_sensitive_data(text) == [
        "Possible social security number detected",
        "Possible credit card number detected",
    ]
