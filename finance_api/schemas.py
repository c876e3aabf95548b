# finance_api/schemas.py
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class TransactionPayload(BaseModel):
    # Raw JSON values; the ledger validates them so bad input is a 400, not a 422
    type: Any = None
    amount: Any = None
    category: Any = None


class TransactionOut(CamelModel):
    id: int
    user: str
    type: str
    amount: float
    category: str
    date: datetime
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_orm_row(cls, row):
        return cls(
            id=row.id,
            user=row.user_id,
            type=row.type,
            amount=float(row.amount),
            category=row.category,
            date=row.date,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


class SummaryOut(CamelModel):
    id: int
    user: str
    total_income: float
    total_expenses: float
    balance: float
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_orm_row(cls, row):
        return cls(
            id=row.id,
            user=row.user_id,
            total_income=float(row.total_income),
            total_expenses=float(row.total_expenses),
            balance=float(row.balance),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


class SummaryTotals(CamelModel):
    total_income: float = 0.0
    total_expenses: float = 0.0
    balance: float = 0.0


class TransactionWithSummary(BaseModel):
    transaction: TransactionOut
    summary: SummaryOut


class DeleteResult(BaseModel):
    message: str
    summary: SummaryOut
