from typing import Annotated

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.services.documents import SqlDocumentStore, StoredDataset
from app.services.snapshots import SnapshotStore, SqlSnapshotBackend


def get_document_store(db: Session = Depends(get_db)) -> SqlDocumentStore:
    return SqlDocumentStore(db)


def get_snapshot_store(db: Session = Depends(get_db)) -> SnapshotStore:
    return SnapshotStore(SqlSnapshotBackend(db))


def get_stored_dataset(
    documents: SqlDocumentStore = Depends(get_document_store),
) -> StoredDataset:
    stored = documents.load()
    if stored is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No dataset has been loaded yet.",
        )
    return stored


DocumentStoreDep = Annotated[SqlDocumentStore, Depends(get_document_store)]
SnapshotStoreDep = Annotated[SnapshotStore, Depends(get_snapshot_store)]
CurrentDataset = Annotated[StoredDataset, Depends(get_stored_dataset)]
