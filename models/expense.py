"""Pydantic models for Expense data"""
import datetime as dt
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class Category(str, Enum):
    FOOD = "Food"
    TRANSPORT = "Transport"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    BILLS = "Bills"
    HEALTHCARE = "Healthcare"
    OTHER = "Other"


CATEGORIES = [category.value for category in Category]


def parse_day(value: Any) -> Any:
    """Reduces ISO datetimes (string or object) to their calendar date."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, str) and len(value) > 10:
        try:
            return dt.datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        except ValueError:
            # Leave it for pydantic to report
            return value
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        use_enum_values=True,
    )


class Expense(CamelModel):
    """
    A single recorded spending transaction as stored.
    """
    id: Optional[str] = None
    title: str
    amount: float
    category: str
    date: dt.date
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, value: Any) -> Any:
        return parse_day(value)


class ExpenseCreate(CamelModel):
    """Body of POST /api/expenses. The date defaults to the creation day."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1)
    amount: float = Field(ge=0, allow_inf_nan=False)
    category: Category
    date: Optional[dt.date] = None
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, value: Any) -> Any:
        return parse_day(value)


# Fields that may be sent as null to clear them
CLEARABLE_FIELDS = {"description"}


class ExpenseUpdate(CamelModel):
    """
    Body of PUT /api/expenses/{id}.

    Presence is tracked through `model_fields_set`: a field left out of the
    body is unchanged, a field sent with a value replaces the stored one.
    Only `description` may be sent as null, which clears it.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=1)
    amount: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    category: Optional[Category] = None
    date: Optional[dt.date] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, value: Any) -> Any:
        return parse_day(value)

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "ExpenseUpdate":
        for name in self.model_fields_set:
            if name not in CLEARABLE_FIELDS and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> Dict[str, Any]:
        """The supplied fields only, keyed by their Python names."""
        return self.model_dump(include=self.model_fields_set)


class ExpenseFilter(BaseModel):
    """Selection shared by listing and statistics. Both date bounds are inclusive."""
    category: Optional[str] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None


class ExpenseQuery(ExpenseFilter):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1, le=500)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ExpensePage(BaseModel):
    items: List[Expense]
    pagination: Pagination


class CategoryTotal(BaseModel):
    category: str
    total: float
    count: int


class MonthlyTotal(BaseModel):
    year: int
    month: int
    total: float
    count: int


class ExpenseStats(CamelModel):
    total_amount: float
    category_breakdown: List[CategoryTotal]
    monthly_spending: List[MonthlyTotal]
    total_expenses: int
