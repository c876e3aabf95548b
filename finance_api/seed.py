# finance_api/seed.py
import argparse
import random
from typing import List, Optional

from faker import Faker
from sqlalchemy.orm import Session

from . import ledger
from .auth import create_access_token
from .database import SessionLocal, init_db
from .models import Transaction

INCOME_CATEGORIES = ["salary", "freelance", "interest", "gift", "refund"]


def seed_transactions(db: Session, user_id: str, rows: int, fake: Optional[Faker] = None) -> List[Transaction]:
    """
    Records ``rows`` random transactions for ``user_id`` through the ledger so
    the user's summary stays consistent, then reconciles it with an aggregate.
    """
    fake = fake or Faker()
    created = []

    for _ in range(rows):
        # Roughly one income for every three expenses
        type_ = "income" if random.random() < 0.25 else "expense"  # nosec B311
        if type_ == "income":
            category = random.choice(INCOME_CATEGORIES)  # nosec B311
            amount = round(random.uniform(200.0, 3000.0), 2)  # nosec B311
        else:
            category = fake.word()
            amount = round(random.uniform(5.0, 500.0), 2)  # nosec B311
        transaction, _ = ledger.create_transaction(db, user_id, type_, amount, category)
        created.append(transaction)

    if created:
        ledger.recompute_summary(db, user_id)
    return created


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed dummy transactions for a user.")
    parser.add_argument("--user", default="demo-user", help="User id to own the transactions")
    parser.add_argument("--rows", type=int, default=50, help="Number of transactions to generate")
    args = parser.parse_args(argv)

    init_db()
    db = SessionLocal()
    try:
        created = seed_transactions(db, args.user, args.rows)
        totals = ledger.get_summary(db, args.user)
    finally:
        db.close()

    print(f"Seeded {len(created)} transactions for {args.user}.")
    print(f"Income: {totals.total_income:.2f}  Expenses: {totals.total_expenses:.2f}  Balance: {totals.balance:.2f}")
    print(f"Bearer token: {create_access_token(args.user)}")


if __name__ == "__main__":
    main()
