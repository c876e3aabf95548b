# finance_api/main.py
import logging
from contextlib import asynccontextmanager, contextmanager
from typing import List

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import ledger
from .auth import get_current_user_id
from .config import configure_logging, settings
from .database import get_db, init_db
from .errors import LedgerError
from .schemas import (
    DeleteResult,
    SummaryOut,
    SummaryTotals,
    TransactionOut,
    TransactionPayload,
    TransactionWithSummary,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    init_db()
    yield


app = FastAPI(
    title="Personal Finance Tracker API",
    description="API for recording income and expenses and keeping a running balance.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Missing or malformed bodies get the same 400 as bad field values
    logger.debug("Rejected request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"detail": "Invalid input"})


@contextmanager
def reported_errors(action: str, user_id: str):
    """Maps ledger errors to their status codes and anything else to a generic 500."""
    try:
        yield
    except HTTPException:
        raise
    except LedgerError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        # Details stay in the server log
        logger.exception("Failed to %s for user %s", action, user_id)
        raise HTTPException(status_code=500, detail="Server error")


# This is the route for the root URL "/"
@app.get("/")
def read_root():
    return {"message": "Welcome to the Personal Finance Tracker API"}


@router.get("", response_model=List[TransactionOut])
def list_transactions(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Returns every transaction owned by the authenticated user.
    """
    with reported_errors("list transactions", user_id):
        return [TransactionOut.from_orm_row(t) for t in ledger.list_transactions(db, user_id)]


@router.get("/summary", response_model=SummaryTotals)
def get_summary(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Returns total income, total expenses and the balance between them.
    """
    with reported_errors("read summary", user_id):
        return ledger.get_summary(db, user_id)


@router.post("", response_model=TransactionWithSummary)
def create_transaction(
    payload: TransactionPayload,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Records a transaction and returns it together with the updated summary.
    - **type**: `income` or `expense`
    - **amount**: a positive number
    - **category**: free-text label
    """
    with reported_errors("create transaction", user_id):
        transaction, summary = ledger.create_transaction(
            db, user_id, payload.type, payload.amount, payload.category
        )
        return TransactionWithSummary(
            transaction=TransactionOut.from_orm_row(transaction),
            summary=SummaryOut.from_orm_row(summary),
        )


@router.put("/{transaction_id}", response_model=TransactionWithSummary)
def update_transaction(
    transaction_id: str,
    payload: TransactionPayload,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    with reported_errors("update transaction", user_id):
        transaction, summary = ledger.update_transaction(
            db, user_id, transaction_id, payload.type, payload.amount, payload.category
        )
        return TransactionWithSummary(
            transaction=TransactionOut.from_orm_row(transaction),
            summary=SummaryOut.from_orm_row(summary),
        )


@router.delete("/{transaction_id}", response_model=DeleteResult)
def delete_transaction(
    transaction_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    with reported_errors("delete transaction", user_id):
        summary = ledger.delete_transaction(db, user_id, transaction_id)
        return DeleteResult(
            message="Transaction deleted successfully",
            summary=SummaryOut.from_orm_row(summary),
        )


app.include_router(router)


def run():
    uvicorn.run("finance_api.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
