# finance_api/models.py
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, Numeric, String

from .database import Base

TRANSACTION_TYPES = ("income", "expense")

# Fixed-point so repeated adjustments never drift
Money = Numeric(12, 2, asdecimal=True)


def _utcnow():
    return datetime.now(timezone.utc)


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("type IN ('income', 'expense')", name="ck_transactions_type"),
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    type = Column(String(16), nullable=False)
    amount = Column(Money, nullable=False)
    category = Column(String(100), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<Transaction id={self.id} user={self.user_id} {self.type} {self.amount}>"


class Summary(Base):
    __tablename__ = "summaries"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, unique=True, index=True)
    total_income = Column(Money, nullable=False, default=Decimal("0.00"))
    total_expenses = Column(Money, nullable=False, default=Decimal("0.00"))
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    @property
    def balance(self) -> Decimal:
        return (self.total_income or Decimal("0")) - (self.total_expenses or Decimal("0"))

    def adjust(self, type_: str, delta: Decimal):
        """Moves the bucket for ``type_`` by ``delta`` (negative to subtract)."""
        if type_ == "income":
            self.total_income = (self.total_income or Decimal("0")) + delta
        elif type_ == "expense":
            self.total_expenses = (self.total_expenses or Decimal("0")) + delta

    def reset(self):
        self.total_income = Decimal("0.00")
        self.total_expenses = Decimal("0.00")

    def __repr__(self):
        return f"<Summary user={self.user_id} income={self.total_income} expenses={self.total_expenses}>"
