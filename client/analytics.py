"""Derived statistics over the expenses currently held by the client."""
import calendar
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Sequence, Tuple

from models.expense import Expense

TOP_CATEGORIES = 5
TREND_MONTHS = 6

ZERO = Decimal(0)
HUNDRED = Decimal(100)


@dataclass(frozen=True)
class CategoryShare:
    category: str
    amount: Decimal
    percentage: Decimal


@dataclass(frozen=True)
class MonthBar:
    label: str
    amount: Decimal
    height: Decimal


@dataclass(frozen=True)
class Analytics:
    total_amount: Decimal = ZERO
    average_expense: Decimal = ZERO
    count: int = 0
    category_breakdown: Dict[str, Decimal] = field(default_factory=dict)
    # Keys are in chronological order
    monthly_spending: Dict[str, Decimal] = field(default_factory=dict)


def month_label(day: date) -> str:
    return f"{calendar.month_abbr[day.month]} {day.year}"


def compute_analytics(expenses: Sequence[Expense]) -> Analytics:
    if not expenses:
        return Analytics()

    total = ZERO
    category_breakdown: Dict[str, Decimal] = {}
    by_month: Dict[Tuple[int, int], Decimal] = {}
    for expense in expenses:
        amount = Decimal(str(expense.amount))
        total += amount
        category_breakdown[expense.category] = category_breakdown.get(expense.category, ZERO) + amount
        month = (expense.date.year, expense.date.month)
        by_month[month] = by_month.get(month, ZERO) + amount

    monthly_spending = {
        month_label(date(year, month, 1)): amount
        for (year, month), amount in sorted(by_month.items())
    }
    return Analytics(
        total_amount=total,
        average_expense=total / len(expenses),
        count=len(expenses),
        category_breakdown=category_breakdown,
        monthly_spending=monthly_spending,
    )


def top_categories(analytics: Analytics, n: int = TOP_CATEGORIES) -> List[CategoryShare]:
    """The n largest categories by amount, each with its share of the total in percent."""
    ranked = sorted(analytics.category_breakdown.items(), key=lambda item: item[1], reverse=True)[:n]
    shares = []
    for category, amount in ranked:
        if analytics.total_amount:
            percentage = amount / analytics.total_amount * HUNDRED
        else:
            percentage = ZERO
        shares.append(CategoryShare(category=category, amount=amount, percentage=percentage))
    return shares


def recent_months(analytics: Analytics, n: int = TREND_MONTHS) -> List[MonthBar]:
    """
    The trailing n months in chronological order. Bar heights are percentages
    of the largest monthly total across all months, not only the n shown.
    """
    if not analytics.monthly_spending:
        return []
    peak = max(analytics.monthly_spending.values())
    bars = []
    for label, amount in list(analytics.monthly_spending.items())[-n:]:
        height = amount / peak * HUNDRED if peak else ZERO
        bars.append(MonthBar(label=label, amount=amount, height=height))
    return bars


def format_currency(value: Decimal, places: int = 2) -> str:
    quantum = Decimal(1).scaleb(-places)
    return f"${Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)}"


def format_percentage(value: Decimal) -> str:
    return f"{Decimal(value).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)}%"
