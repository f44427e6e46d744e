"""API Routes for expenses"""
import datetime as dt
import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, status
from motor.motor_asyncio import AsyncIOMotorCollection

from models.expense import (
    Expense,
    ExpenseCreate,
    ExpenseFilter,
    ExpenseQuery,
    ExpenseStats,
    ExpenseUpdate,
)
from models.responses import ApiResponse
from services import expenses_service

router = APIRouter()
logger = logging.getLogger(__name__)

# --- Dependency Function ---
def get_expenses_collection(request: Request) -> AsyncIOMotorCollection:
    """Dependency to get the MongoDB expenses collection from the request state."""
    collection = getattr(request.state, "expenses_collection", None)
    if collection is None:
        logger.error("Expenses collection not found in application state. Check MongoDB connection.")
        raise HTTPException(status_code=503, detail="Database service not available.")
    return collection

# Type hint for the dependency
ExpensesCollectionDep = Annotated[AsyncIOMotorCollection, Depends(get_expenses_collection)]

# Query parameters keep the camelCase names of the public API
CategoryParam = Annotated[Optional[str], Query(description="Exact category to match.")]
StartDateParam = Annotated[Optional[dt.date], Query(alias="startDate", description="Inclusive lower bound (YYYY-MM-DD).")]
EndDateParam = Annotated[Optional[dt.date], Query(alias="endDate", description="Inclusive upper bound (YYYY-MM-DD).")]

# --- API Routes ---

@router.get(
    "/expenses",
    response_model=ApiResponse[List[Expense]],
    response_model_exclude_none=True,
    summary="List Expenses",
    description="Retrieves expenses matching the filters, newest first, one page at a time.",
)
async def list_expenses(
    collection: ExpensesCollectionDep,
    category: CategoryParam = None,
    start_date: StartDateParam = None,
    end_date: EndDateParam = None,
    limit: Annotated[int, Query(ge=1, le=500, description="Items per page.")] = 50,
    page: Annotated[int, Query(ge=1, description="1-based page number.")] = 1,
):
    logger.info(f"GET /expenses called: category={category!r} startDate={start_date} endDate={end_date} page={page} limit={limit}")
    expense_query = ExpenseQuery(
        category=category or None,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    result = await expenses_service.list_expenses(collection, expense_query)
    return ApiResponse(data=result.items, pagination=result.pagination)


@router.get(
    "/expenses/stats",
    response_model=ApiResponse[ExpenseStats],
    response_model_exclude_none=True,
    summary="Expense Statistics",
    description="Total, per-category and per-month aggregates over the matching expenses.",
)
async def get_expense_stats(
    collection: ExpensesCollectionDep,
    category: CategoryParam = None,
    start_date: StartDateParam = None,
    end_date: EndDateParam = None,
):
    logger.info(f"GET /expenses/stats called: category={category!r} startDate={start_date} endDate={end_date}")
    expense_filter = ExpenseFilter(category=category or None, start_date=start_date, end_date=end_date)
    stats = await expenses_service.get_expense_stats(collection, expense_filter)
    return ApiResponse(data=stats)


@router.delete(
    "/expenses/all",
    response_model=ApiResponse[dict],
    response_model_exclude_none=True,
    summary="Delete All Expenses",
    description="Deletes all expense records from the database. Use with caution!",
)
async def delete_all_expenses(collection: ExpensesCollectionDep):
    logger.warning("DELETE /expenses/all endpoint called. This will clear the database.")
    deleted_count = await expenses_service.delete_all_expenses(collection)
    return ApiResponse(message=f"Deleted {deleted_count} expenses", data={"deletedCount": deleted_count})


@router.get(
    "/expenses/{expense_id}",
    response_model=ApiResponse[Expense],
    response_model_exclude_none=True,
    summary="Get Expense",
)
async def get_expense(expense_id: str, collection: ExpensesCollectionDep):
    logger.info(f"GET /expenses/{expense_id} called")
    expense = await expenses_service.get_expense(collection, expense_id)
    return ApiResponse(data=expense)


@router.post(
    "/expenses",
    response_model=ApiResponse[Expense],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create Expense",
)
async def create_expense(expense_in: Annotated[ExpenseCreate, Body(...)], collection: ExpensesCollectionDep):
    logger.info(f"POST /expenses called: {expense_in.title!r}")
    expense = await expenses_service.create_expense(collection, expense_in)
    return ApiResponse(message="Expense created successfully", data=expense)


@router.put(
    "/expenses/{expense_id}",
    response_model=ApiResponse[Expense],
    response_model_exclude_none=True,
    summary="Update Expense",
    description="Changes only the fields present in the body; `description: null` clears the description.",
)
async def update_expense(
    expense_id: str,
    expense_update: Annotated[ExpenseUpdate, Body(...)],
    collection: ExpensesCollectionDep,
):
    logger.info(f"PUT /expenses/{expense_id} called with fields {sorted(expense_update.model_fields_set)}")
    expense = await expenses_service.update_expense(collection, expense_id, expense_update)
    return ApiResponse(message="Expense updated successfully", data=expense)


@router.delete(
    "/expenses/{expense_id}",
    response_model=ApiResponse[Expense],
    response_model_exclude_none=True,
    summary="Delete Expense",
)
async def delete_expense(expense_id: str, collection: ExpensesCollectionDep):
    logger.info(f"DELETE /expenses/{expense_id} called")
    expense = await expenses_service.delete_expense(collection, expense_id)
    return ApiResponse(message="Expense deleted successfully", data=expense)
