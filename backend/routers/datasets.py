import logging
from fastapi import APIRouter, UploadFile, File, Depends, Query, Request
from sqlalchemy.orm import Session
from database import get_db
from config import settings
from errors import DataValidationError
from schemas import DatasetResponse, UploadResponse
from services.ingestion import parse_csv
from services.repository import DatasetRepository

logger = logging.getLogger("Cashflow.Datasets")

router = APIRouter()


@router.post("/datasets/upload", response_model=UploadResponse)
async def upload_dataset(
    file: UploadFile = File(...),
    name: str = Query("uploaded-dataset", min_length=1, max_length=200),
    db: Session = Depends(get_db),
):
    """Upload a CSV of transactions as a new dataset."""
    if not (file.filename or "").lower().endswith(".csv"):
        raise DataValidationError(f"Only CSV files are supported. Got: {file.filename}")

    content = await file.read()
    if len(content) > settings.MAX_FILE_SIZE_MB * 1024 * 1024:
        raise DataValidationError(f"File {file.filename} exceeds {settings.MAX_FILE_SIZE_MB}MB limit")

    records = parse_csv(content)
    dataset = DatasetRepository(db).create_dataset(name, records)

    logger.info(f"Uploaded {file.filename} as dataset {dataset.id} ({len(records)} rows)")

    return UploadResponse(dataset_id=dataset.id, name=dataset.name, transaction_count=len(records))


@router.get("/datasets", response_model=list[DatasetResponse])
def list_datasets(db: Session = Depends(get_db)):
    return DatasetRepository(db).list_datasets()


@router.get("/datasets/{dataset_id}", response_model=DatasetResponse)
def get_dataset(dataset_id: str, db: Session = Depends(get_db)):
    repo = DatasetRepository(db)
    dataset = repo.get_dataset(dataset_id)
    return DatasetResponse(
        id=dataset.id,
        name=dataset.name,
        created_at=dataset.created_at,
        transaction_count=repo.count_transactions(dataset_id),
    )


@router.get("/datasets/{dataset_id}/count")
def count_transactions(dataset_id: str, db: Session = Depends(get_db)) -> int:
    repo = DatasetRepository(db)
    repo.get_dataset(dataset_id)
    return repo.count_transactions(dataset_id)


@router.delete("/datasets/{dataset_id}")
def delete_dataset(dataset_id: str, request: Request, db: Session = Depends(get_db)):
    """Delete a dataset, its transactions and any insights cached for it."""
    removed = DatasetRepository(db).delete_dataset(dataset_id)
    request.app.state.insight_service.forget_dataset(dataset_id)
    return {"message": "Dataset deleted", "datasetId": dataset_id, "transactionsRemoved": removed}
