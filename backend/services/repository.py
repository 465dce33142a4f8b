"""Dataset persistence contract over a SQLAlchemy session."""
import logging
from typing import List, Sequence

from sqlalchemy.orm import Session

from errors import NotFoundError
from models import Dataset, Transaction
from schemas import TransactionRecord

logger = logging.getLogger("Cashflow.Repository")


class DatasetRepository:
    def __init__(self, db: Session):
        self.db = db

    def create_dataset(self, name: str, records: Sequence[TransactionRecord]) -> Dataset:
        """Persist a dataset and its transactions in one commit."""
        dataset = Dataset(name=name)
        self.db.add(dataset)
        self.db.flush()

        self.db.add_all([
            Transaction(
                dataset_id=dataset.id,
                date=r.date,
                amount=r.amount,
                type=r.type,
                category=r.category,
            )
            for r in records
        ])
        self.db.commit()
        self.db.refresh(dataset)
        logger.info("Stored dataset %s (%s) with %d transactions", dataset.id, name, len(records))
        return dataset

    def get_dataset(self, dataset_id: str) -> Dataset:
        dataset = self.db.query(Dataset).filter(Dataset.id == dataset_id).first()
        if not dataset:
            raise NotFoundError(f"Dataset {dataset_id} not found")
        return dataset

    def list_datasets(self) -> List[Dataset]:
        return self.db.query(Dataset).order_by(Dataset.created_at.desc()).all()

    def list_transactions(self, dataset_id: str) -> List[Transaction]:
        return (
            self.db.query(Transaction)
            .filter(Transaction.dataset_id == dataset_id)
            .order_by(Transaction.date)
            .all()
        )

    def count_transactions(self, dataset_id: str) -> int:
        return self.db.query(Transaction).filter(Transaction.dataset_id == dataset_id).count()

    def delete_dataset(self, dataset_id: str) -> int:
        """Remove a dataset and its transactions atomically; returns rows removed."""
        dataset = self.get_dataset(dataset_id)
        try:
            removed = (
                self.db.query(Transaction)
                .filter(Transaction.dataset_id == dataset_id)
                .delete(synchronize_session=False)
            )
            self.db.delete(dataset)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("Deleted dataset %s and %d transactions", dataset_id, removed)
        return removed
