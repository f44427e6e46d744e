from datetime import date
from decimal import Decimal

from client.analytics import (
    compute_analytics,
    format_currency,
    format_percentage,
    recent_months,
    top_categories,
)
from factories import expense


def test_empty_list_has_zero_totals():
    analytics = compute_analytics([])

    assert analytics.total_amount == 0
    assert analytics.average_expense == 0
    assert analytics.category_breakdown == {}
    assert top_categories(analytics) == []
    assert recent_months(analytics) == []


def test_average_expense():
    analytics = compute_analytics([expense(title="a", amount=10), expense(title="b", amount=30)])

    assert analytics.total_amount == Decimal("40")
    assert analytics.average_expense == Decimal("20")
    assert analytics.count == 2


def test_monthly_spending_is_chronological():
    analytics = compute_analytics([
        expense(title="feb", amount=5, day=date(2024, 2, 3)),
        expense(title="dec", amount=7, day=date(2023, 12, 24)),
        expense(title="jan", amount=1, day=date(2024, 1, 9)),
        expense(title="jan2", amount=2, day=date(2024, 1, 19)),
    ])

    assert list(analytics.monthly_spending.items()) == [
        ("Dec 2023", Decimal("7")),
        ("Jan 2024", Decimal("3")),
        ("Feb 2024", Decimal("5")),
    ]


def test_top_categories_carry_percentages():
    analytics = compute_analytics([
        expense(title="a", amount=30, category="Food"),
        expense(title="b", amount=10, category="Bills"),
        expense(title="c", amount=60, category="Shopping"),
    ])

    shares = top_categories(analytics, n=2)

    assert [(s.category, s.percentage) for s in shares] == [
        ("Shopping", Decimal("60")),
        ("Food", Decimal("30")),
    ]


def test_top_categories_with_zero_total():
    analytics = compute_analytics([expense(amount=0)])

    assert top_categories(analytics)[0].percentage == 0


def test_recent_months_are_normalized_against_the_overall_peak():
    expenses = [expense(title=f"m{month}", amount=month * 10, day=date(2024, month, 1)) for month in range(1, 9)]
    # The peak month falls outside the trailing window
    expenses.append(expense(title="peak", amount=1000, day=date(2024, 1, 2)))

    bars = recent_months(compute_analytics(expenses))

    assert [bar.label for bar in bars] == ["Mar 2024", "Apr 2024", "May 2024", "Jun 2024", "Jul 2024", "Aug 2024"]
    assert bars[-1].height == Decimal("80") / Decimal("1010") * 100


def test_formatting():
    assert format_currency(Decimal("12.345")) == "$12.35"
    assert format_currency(Decimal("0")) == "$0.00"
    assert format_percentage(Decimal("33.333")) == "33.3%"
