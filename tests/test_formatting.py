"""Display formatting helpers."""

from marketpulse import formatting as fmt


def test_currency_and_percentage():
    assert fmt.format_currency(1234.5) == "$1,234.50"
    assert fmt.format_currency(-3) == "-$3.00"
    assert fmt.format_currency(None) == "$0.00"
    assert fmt.format_percentage(2.5) == "+2.50%"
    assert fmt.format_percentage(-1.2) == "-1.20%"
    assert fmt.format_percentage(0) == "0.00%"


def test_probability():
    assert fmt.format_probability(0.654) == "65.4%"
    assert fmt.format_probability(42.0) == "42.0%"


def test_large_number():
    assert fmt.format_large_number(27_360_000_000_000) == "27360.00B"
    assert fmt.format_large_number(1_500_000) == "1.50M"
    assert fmt.format_large_number(999) == "999.00"


def test_relative_timestamp():
    now = 10_000_000
    assert fmt.format_timestamp(None) == "Never"
    assert fmt.format_timestamp(now - 30_000, now) == "Just now"
    assert fmt.format_timestamp(now - 60_000, now) == "1 minute ago"
    assert fmt.format_timestamp(now - 3 * 3_600_000, now) == "3 hours ago"


def test_date():
    assert fmt.format_date("2026-01-15") == "Jan 15, 2026"
    assert fmt.format_date("Q3") == "Q3"
    assert fmt.format_date(None) == "Unknown"


def test_units_and_frequency():
    assert fmt.abbreviate_units("Billions of Dollars") == "Bn USD"
    assert fmt.abbreviate_units("Percent Change from Year Ago") == "% YoY"
    assert fmt.abbreviate_units("Index 1982-1984=100") == "Index"
    assert fmt.abbreviate_units("Percent") == "%"
    assert fmt.expand_frequency("Q") == "Quarterly"
    assert fmt.expand_frequency("X") == "X"
    assert fmt.format_change(1.5, "Q") == "+1.50% QoQ"
    assert fmt.format_change(-0.25) == "-0.25%"


def test_misc():
    assert fmt.change_class(0) == "neutral"
    assert fmt.change_class(-1) == "negative"
    assert fmt.truncate_text("a" * 60, 10) == "aaaaaaa..."
    assert fmt.mask_key("abcdef12") == "abcd****"
    assert fmt.mask_key("") == ""
