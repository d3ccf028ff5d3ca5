"""
Paranoid HTTP Endpoints

Router factory exposing a paranoid model over FastAPI: listing, counting
and fetching live records (optionally including deleted ones), soft
deletion, and permanent deletion on request.
"""

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query
from sqlalchemy.orm import Session

from paranoid.db import get_db as default_get_db
from paranoid.exceptions import RecordNotFound
from paranoid.soft_delete import SoftDeleteRepository, paranoid_repository

logger = logging.getLogger(__name__)


def build_router(
    model: Any,
    get_db: Callable[..., Iterator[Session]] = default_get_db,
    prefix: Optional[str] = None,
    tags: Optional[List[str]] = None,
) -> APIRouter:
    """
    Build CRUD-style read/delete endpoints for a paranoid model

    Records are serialized with ``to_dict()`` and looked up by an integer
    primary key. ``prefix`` defaults to "/<table name>".
    """
    router = APIRouter(prefix=prefix or f"/{model.__tablename__}", tags=tags or [model.__name__])
    name = model.__name__

    def get_repository(db: Session = Depends(get_db)) -> SoftDeleteRepository:
        return paranoid_repository(db, model)

    @router.get("")
    async def list_records(
        with_deleted: bool = False,
        limit: int = Query(100, ge=1, le=500),
        offset: int = Query(0, ge=0),
        repo: SoftDeleteRepository = Depends(get_repository),
    ):
        """List records, live ones only unless with_deleted is set"""
        records = repo.find(
            "all",
            with_deleted=with_deleted,
            order_by=repo.base.primary_key,
            limit=limit,
            offset=offset,
        )
        return {
            "items": [r.to_dict() for r in records],
            "total": repo.count(with_deleted=with_deleted),
            "limit": limit,
            "offset": offset,
        }

    @router.get("/count")
    async def count_records(
        with_deleted: bool = False,
        repo: SoftDeleteRepository = Depends(get_repository),
    ):
        return {"count": repo.count(with_deleted=with_deleted)}

    @router.get("/{record_id}")
    async def get_record(
        record_id: int,
        with_deleted: bool = False,
        repo: SoftDeleteRepository = Depends(get_repository),
    ):
        try:
            record = repo.find(record_id, with_deleted=with_deleted)
        except RecordNotFound:
            raise HTTPException(status_code=404, detail=f"{name} not found")
        return record.to_dict()

    @router.delete("/{record_id}")
    async def delete_record(
        record_id: int,
        permanent: bool = False,
        repo: SoftDeleteRepository = Depends(get_repository),
    ):
        """
        Delete a record

        - **permanent**: remove the row instead of setting deleted_at;
          soft-deleted records can be removed this way too
        """
        try:
            record = repo.find(record_id, with_deleted=permanent)
        except RecordNotFound:
            raise HTTPException(status_code=404, detail=f"{name} not found")

        if permanent:
            payload = record.to_dict()
            repo.hard_destroy(record)
            repo.db.commit()
            return {"deleted": True, "permanent": True, "record": payload}

        try:
            result = repo.destroy(record)
        except Exception as e:
            logger.error(f"Error deleting {name} {record_id}: {str(e)}")
            raise HTTPException(status_code=400, detail=str(e))
        if result is False:
            raise HTTPException(status_code=409, detail=f"{name} {record_id} refused deletion")

        payload = record.to_dict()
        repo.db.commit()
        return {"deleted": True, "permanent": False, "record": payload}

    return router


def create_app(*models: Any, get_db: Callable[..., Iterator[Session]] = default_get_db) -> FastAPI:
    app = FastAPI(
        title="Paranoid Records API",
        description="Soft-delete aware access to paranoid models",
    )

    @app.get("/health", tags=["Health"])
    async def health_check() -> Dict[str, str]:
        """Health check endpoint"""
        return {"status": "healthy", "service": "paranoid"}

    for model in models:
        app.include_router(build_router(model, get_db=get_db))
    return app
