import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Float, Date, DateTime, ForeignKey
from database import Base
import enum


# ─── Enums ────────────────────────────────────────────────────────────────────

class TransactionType(str, enum.Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


# ─── Helper ───────────────────────────────────────────────────────────────────

def generate_uuid():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


# ─── Models ───────────────────────────────────────────────────────────────────

class Dataset(Base):
    """An uploaded set of transactions."""
    __tablename__ = "datasets"

    id = Column(String, primary_key=True, default=generate_uuid)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)


class Transaction(Base):
    """A single dated, categorized cashflow line.

    Removal goes through the repository (``delete_dataset``), there is no ORM
    relationship or cascade between datasets and transactions.
    """
    __tablename__ = "transactions"

    id = Column(String, primary_key=True, default=generate_uuid)
    dataset_id = Column(String, ForeignKey("datasets.id"), nullable=False, index=True)

    date = Column(Date, nullable=False)
    amount = Column(Float, nullable=False)  # expenses stored negative
    type = Column(String, nullable=False)  # INCOME / EXPENSE
    category = Column(String, default="")

    created_at = Column(DateTime, default=utcnow)
