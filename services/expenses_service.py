"""Service layer for handling expense-related logic."""
import logging
import math
from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection # Type hint for collection
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from models.expense import (
    CategoryTotal,
    Expense,
    ExpenseCreate,
    ExpenseFilter,
    ExpensePage,
    ExpenseQuery,
    ExpenseStats,
    ExpenseUpdate,
    MonthlyTotal,
    Pagination,
)
from services.errors import NotFoundError, StoreError

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
MONTHS_IN_STATS = 12


# --- Conversion helpers ---

def to_storage_datetime(day: date) -> datetime:
    """BSON has no date type; days are stored as naive UTC midnight."""
    return datetime.combine(day, time.min)


def utc_now() -> datetime:
    """Naive UTC now at millisecond precision, as MongoDB stores it."""
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def utc_today() -> date:
    return utc_now().date()


def to_money(value: Any) -> Decimal:
    """Builds a Decimal from the value's shortest repr so 0.1 stays 0.1."""
    return Decimal(str(value))


def round_money(value: Decimal) -> float:
    return float(value.quantize(CENT, rounding=ROUND_HALF_UP))


def _object_id(expense_id: str) -> ObjectId:
    try:
        return ObjectId(expense_id)
    except (InvalidId, TypeError):
        # A malformed id can never match a stored document
        raise NotFoundError("Expense not found", detail=f"Invalid expense id: {expense_id}")


def _to_expense(doc: Dict[str, Any]) -> Expense:
    doc = dict(doc)
    if '_id' in doc: doc['id'] = str(doc.pop('_id'))
    return Expense.model_validate(doc)


def _to_document(values: Dict[str, Any]) -> Dict[str, Any]:
    doc = dict(values)
    if isinstance(doc.get('date'), date):
        doc['date'] = to_storage_datetime(doc['date'])
    return doc


def build_query(expense_filter: ExpenseFilter) -> Dict[str, Any]:
    """Translates a category/date-range selection into a MongoDB filter document."""
    query: Dict[str, Any] = {}
    if expense_filter.category:
        query['category'] = expense_filter.category
    if expense_filter.start_date or expense_filter.end_date:
        date_range = {}
        if expense_filter.start_date:
            date_range['$gte'] = to_storage_datetime(expense_filter.start_date)
        if expense_filter.end_date:
            # Inclusive upper bound covers the whole end day
            date_range['$lt'] = to_storage_datetime(expense_filter.end_date + timedelta(days=1))
        query['date'] = date_range
    return query


# --- Store operations ---

async def list_expenses(collection: AsyncIOMotorCollection, expense_query: ExpenseQuery) -> ExpensePage:
    """Fetches one page of matching expenses, newest first, with the pre-pagination total."""
    query = build_query(expense_query)
    skip = (expense_query.page - 1) * expense_query.limit
    logger.info(f"Listing expenses from '{collection.name}' with filter {query}, page {expense_query.page}, limit {expense_query.limit}")
    expenses = []
    try:
        total = await collection.count_documents(query)
        cursor = (
            collection.find(query)
            .sort([('date', DESCENDING), ('_id', DESCENDING)])
            .skip(skip)
            .limit(expense_query.limit)
        )
        async for doc in cursor:
            expenses.append(_to_expense(doc))
    except PyMongoError as e:
        logger.error(f"Database error listing expenses: {e}")
        raise StoreError("Failed to fetch expenses", detail=str(e))

    pages = math.ceil(total / expense_query.limit)
    logger.info(f"Fetched {len(expenses)} of {total} matching expenses.")
    return ExpensePage(
        items=expenses,
        pagination=Pagination(page=expense_query.page, limit=expense_query.limit, total=total, pages=pages),
    )


async def get_expense(collection: AsyncIOMotorCollection, expense_id: str) -> Expense:
    obj_id = _object_id(expense_id)
    try:
        doc = await collection.find_one({'_id': obj_id})
    except PyMongoError as e:
        logger.error(f"Database error fetching expense {expense_id}: {e}")
        raise StoreError("Failed to fetch expense", detail=str(e))
    if doc is None:
        raise NotFoundError("Expense not found", detail=f"No expense with id {expense_id}")
    return _to_expense(doc)


async def create_expense(collection: AsyncIOMotorCollection, expense_in: ExpenseCreate) -> Expense:
    """Persists a validated expense. The store assigns the id and timestamps."""
    now = utc_now()
    values = expense_in.model_dump()
    if values['date'] is None:
        values['date'] = utc_today()
    doc = _to_document(values)
    doc['created_at'] = now
    doc['updated_at'] = now
    try:
        result = await collection.insert_one(doc)
    except PyMongoError as e:
        logger.error(f"Database error creating expense: {e}")
        raise StoreError("Failed to create expense", detail=str(e))
    doc['_id'] = result.inserted_id
    logger.info(f"Created expense {result.inserted_id}: {expense_in.title} ({expense_in.amount} {expense_in.category})")
    return _to_expense(doc)


async def update_expense(collection: AsyncIOMotorCollection, expense_id: str, expense_update: ExpenseUpdate) -> Expense:
    """Applies only the supplied fields. An empty update leaves the record untouched."""
    changes = expense_update.changes()
    if not changes:
        logger.info(f"Empty update for expense {expense_id}; returning stored record.")
        return await get_expense(collection, expense_id)

    obj_id = _object_id(expense_id)
    doc_changes = _to_document(changes)
    doc_changes['updated_at'] = utc_now()
    try:
        doc = await collection.find_one_and_update(
            {'_id': obj_id},
            {'$set': doc_changes},
            return_document=ReturnDocument.AFTER,
        )
    except PyMongoError as e:
        logger.error(f"Database error updating expense {expense_id}: {e}")
        raise StoreError("Failed to update expense", detail=str(e))
    if doc is None:
        raise NotFoundError("Expense not found", detail=f"No expense with id {expense_id}")
    logger.info(f"Updated expense {expense_id}: fields {sorted(changes)}")
    return _to_expense(doc)


async def delete_expense(collection: AsyncIOMotorCollection, expense_id: str) -> Expense:
    """Deletes an expense permanently and returns it."""
    obj_id = _object_id(expense_id)
    try:
        doc = await collection.find_one_and_delete({'_id': obj_id})
    except PyMongoError as e:
        logger.error(f"Database error deleting expense {expense_id}: {e}")
        raise StoreError("Failed to delete expense", detail=str(e))
    if doc is None:
        raise NotFoundError("Expense not found", detail=f"No expense with id {expense_id}")
    logger.info(f"Deleted expense {expense_id}.")
    return _to_expense(doc)


async def delete_all_expenses(collection: AsyncIOMotorCollection) -> int:
    """Deletes all documents from the specified expense collection."""
    logger.warning(f"Attempting to delete ALL documents from collection '{collection.name}'.")
    try:
        result = await collection.delete_many({})
    except PyMongoError as e:
        logger.error(f"Database error during delete_many operation: {e}")
        raise StoreError("Failed to delete expenses", detail=str(e))
    logger.info(f"Successfully deleted {result.deleted_count} documents from collection '{collection.name}'.")
    return result.deleted_count


# --- Aggregation ---

def _month_of(value: Any) -> Tuple[int, int]:
    """(year, month) of a stored date, read in UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.year, value.month
    return value.year, value.month


def summarize(docs: List[Dict[str, Any]]) -> ExpenseStats:
    """Totals, per-category and per-month aggregates over already-filtered documents."""
    total = Decimal(0)
    by_category: Dict[str, List] = defaultdict(lambda: [Decimal(0), 0])
    by_month: Dict[Tuple[int, int], List] = defaultdict(lambda: [Decimal(0), 0])

    for doc in docs:
        amount = to_money(doc.get('amount', 0))
        total += amount
        category_bucket = by_category[doc.get('category')]
        category_bucket[0] += amount
        category_bucket[1] += 1
        month_bucket = by_month[_month_of(doc['date'])]
        month_bucket[0] += amount
        month_bucket[1] += 1

    category_breakdown = [
        CategoryTotal(category=category, total=round_money(amount), count=count)
        for category, (amount, count) in sorted(by_category.items(), key=lambda item: (-item[1][0], str(item[0])))
    ]
    monthly_spending = [
        MonthlyTotal(year=year, month=month, total=round_money(amount), count=count)
        for (year, month), (amount, count) in sorted(by_month.items(), reverse=True)[:MONTHS_IN_STATS]
    ]
    return ExpenseStats(
        total_amount=round_money(total),
        category_breakdown=category_breakdown,
        monthly_spending=monthly_spending,
        total_expenses=len(docs),
    )


async def get_expense_stats(collection: AsyncIOMotorCollection, expense_filter: ExpenseFilter) -> ExpenseStats:
    """Read-only statistics over every expense matching the filter, ignoring pagination."""
    query = build_query(expense_filter)
    logger.info(f"Computing expense statistics with filter {query}")
    try:
        cursor = collection.find(query, {'amount': 1, 'category': 1, 'date': 1}).sort('date', ASCENDING)
        docs = [doc async for doc in cursor]
    except PyMongoError as e:
        logger.error(f"Database error computing statistics: {e}")
        raise StoreError("Failed to fetch expense statistics", detail=str(e))
    stats = summarize(docs)
    logger.info(f"Statistics computed over {stats.total_expenses} expenses, total {stats.total_amount}")
    return stats
