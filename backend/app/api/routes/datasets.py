from __future__ import annotations

from fastapi import APIRouter, File, HTTPException, Response, UploadFile, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.api.deps import CurrentDataset, DocumentStoreDep, SnapshotStoreDep
from app.core.config import get_settings
from app.schemas.datasets import DatasetPublic, IngestionResponse
from app.schemas.entities import Dataset, ScopeFilter
from app.services.coverage import resolve_allowed_store_ids
from app.services.datasets import IngestionResult, dataset_counts, ingest_dataset
from app.services.documents import StoredDataset
from app.services.ingestion import (
    CsvFormatError,
    parse_campaigns,
    parse_event_targets,
    parse_events,
    parse_stores,
)
from app.services.sample_data import sample_dataset

router = APIRouter(prefix="/datasets", tags=["datasets"])

ALLOWED_EXTENSIONS = (".csv", ".xlsx")


async def _read_upload(file: UploadFile) -> bytes:
    settings = get_settings()
    filename = (file.filename or "").lower()
    if filename and not filename.endswith(ALLOWED_EXTENSIONS):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Only CSV or XLSX files are supported ({file.filename}).",
        )
    content = await file.read()
    if len(content) > settings.upload_max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File {file.filename} is too large.",
        )
    return content


def _ingestion_response(dataset: Dataset, result: IngestionResult) -> JSONResponse:
    payload = IngestionResponse(
        adopted=result.adopted,
        validation=result.validation,
        counts=dataset_counts(dataset),
        updated_at=result.stored.updated_at if result.stored else None,
        snapshot=result.snapshot,
    )
    status_code = status.HTTP_201_CREATED if result.adopted else status.HTTP_422_UNPROCESSABLE_ENTITY
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


def _dataset_public(stored: StoredDataset) -> DatasetPublic:
    allowed = resolve_allowed_store_ids(stored.dataset.stores, stored.scope_filter)
    return DatasetPublic(
        version=stored.version,
        updated_at=stored.updated_at,
        counts=dataset_counts(stored.dataset),
        scope_filter=stored.scope_filter,
        allowed_store_count=len(allowed) if allowed is not None else None,
    )


@router.post("", response_model=IngestionResponse, status_code=status.HTTP_201_CREATED)
async def upload_dataset(
    documents: DocumentStoreDep,
    snapshots: SnapshotStoreDep,
    events: UploadFile = File(...),
    campaigns: UploadFile = File(...),
    stores: UploadFile = File(...),
    event_targets: UploadFile | None = File(default=None),
) -> Response:
    try:
        dataset = Dataset(
            events=parse_events(await _read_upload(events), events.filename or "events.csv"),
            campaigns=parse_campaigns(
                await _read_upload(campaigns), campaigns.filename or "campaigns.csv"
            ),
            stores=parse_stores(await _read_upload(stores), stores.filename or "stores.csv"),
            event_targets=(
                parse_event_targets(
                    await _read_upload(event_targets),
                    event_targets.filename or "event_targets.csv",
                )
                if event_targets is not None
                else None
            ),
        )
    except CsvFormatError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    result = ingest_dataset(dataset, documents, snapshots)
    return _ingestion_response(dataset, result)


@router.post("/sample", response_model=IngestionResponse, status_code=status.HTTP_201_CREATED)
def load_sample_dataset(
    documents: DocumentStoreDep,
    snapshots: SnapshotStoreDep,
) -> Response:
    dataset = sample_dataset()
    result = ingest_dataset(dataset, documents, snapshots)
    return _ingestion_response(dataset, result)


@router.get("/current", response_model=DatasetPublic)
def get_current_dataset(stored: CurrentDataset) -> DatasetPublic:
    return _dataset_public(stored)


@router.put("/current/scope", response_model=DatasetPublic)
def update_scope_filter(
    payload: ScopeFilter,
    stored: CurrentDataset,
    documents: DocumentStoreDep,
) -> DatasetPublic:
    updated = documents.save(stored.dataset, payload, stored.updated_at)
    return _dataset_public(updated)


@router.delete("/current", status_code=status.HTTP_204_NO_CONTENT)
def clear_current_dataset(documents: DocumentStoreDep) -> Response:
    if not documents.clear():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No dataset has been loaded yet.",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
