"""
Resume storage backends.

Two interchangeable stores keep resume files and their metadata:

- DatabaseResumeStore: SQLAlchemy table with the file inlined as a data URI.
- SupabaseResumeStore: Supabase Storage bucket for the file plus a
  ``resumes`` table for metadata.

Both write the file before the metadata row, so an id or URL is never
handed out for a file that does not exist.
"""

import base64
import hashlib
import logging
import uuid
from functools import lru_cache
from pathlib import Path
from typing import Any, Protocol

from fastapi import Depends
from postgrest.exceptions import APIError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from supabase import Client, create_client

from ..config import Settings, get_settings
from ..database import get_db
from ..models import ResumeRecord
from ..models_db import Resume
from .exceptions import NotFoundError, StorageError, UnconfiguredError

logger = logging.getLogger(__name__)

# Postgres error raised when a filter value does not parse as the column type
INVALID_TEXT_REPRESENTATION = "22P02"


class ResumeStore(Protocol):
    """Operations every resume store provides."""

    def save(
        self, data: bytes, name: str, file_name: str, content_type: str = "application/pdf"
    ) -> ResumeRecord: ...

    def get(self, resume_id: str) -> ResumeRecord: ...

    def list_all(self) -> list[ResumeRecord]: ...

    def delete(self, resume_id: str) -> None: ...


def to_data_uri(data: bytes, content_type: str = "application/pdf") -> str:
    """Inline file bytes as a base64 data URI."""
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


def object_key(data: bytes, file_name: str) -> str:
    """Content-addressed storage key: sha256 of the bytes plus the file extension."""
    extension = Path(file_name).suffix.lstrip(".").lower() or "pdf"
    return f"{hashlib.sha256(data).hexdigest()}.{extension}"


# =============================================================================
# Database store
# =============================================================================


class DatabaseResumeStore:
    """Keeps resumes in the local SQL database."""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _to_record(row: Resume) -> ResumeRecord:
        return ResumeRecord(
            id=row.id,
            name=row.name,
            file_name=row.file_name,
            file_url=row.file_url,
            uploaded_at=row.uploaded_at,
        )

    def _find(self, resume_id: str) -> Resume:
        try:
            resume_uuid = uuid.UUID(str(resume_id))
        except ValueError:
            raise NotFoundError(f"Resume {resume_id} not found")

        row = self.db.query(Resume).filter(Resume.id == resume_uuid).first()
        if row is None:
            raise NotFoundError(f"Resume {resume_id} not found")
        return row

    def save(
        self, data: bytes, name: str, file_name: str, content_type: str = "application/pdf"
    ) -> ResumeRecord:
        row = Resume(
            name=name,
            file_name=file_name,
            file_url=to_data_uri(data, content_type),
        )
        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to save resume: %s", e)
            raise StorageError(f"Failed to save resume: {e}") from e

        logger.info("Stored resume %s (%s, %d bytes)", row.id, file_name, len(data))
        return self._to_record(row)

    def get(self, resume_id: str) -> ResumeRecord:
        return self._to_record(self._find(resume_id))

    def list_all(self) -> list[ResumeRecord]:
        rows = self.db.query(Resume).order_by(Resume.uploaded_at.desc()).all()
        return [self._to_record(row) for row in rows]

    def delete(self, resume_id: str) -> None:
        row = self._find(resume_id)
        try:
            self.db.delete(row)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Failed to delete resume: {e}") from e
        logger.info("Deleted resume %s", resume_id)


# =============================================================================
# Supabase store
# =============================================================================


class SupabaseResumeStore:
    """Keeps resume files in a Supabase bucket and metadata in a table."""

    def __init__(self, client: Client, bucket: str = "resumes", table: str = "resumes"):
        self.client = client
        self.bucket = bucket
        self.table = table

    @staticmethod
    def _to_record(row: dict[str, Any]) -> ResumeRecord:
        return ResumeRecord(
            id=row["id"],
            name=row.get("name") or "",
            file_name=row.get("file_name") or "",
            file_url=row.get("file_url") or "",
            uploaded_at=row.get("uploaded_at") or row.get("created_at"),
        )

    def save(
        self, data: bytes, name: str, file_name: str, content_type: str = "application/pdf"
    ) -> ResumeRecord:
        key = object_key(data, file_name)
        storage = self.client.storage.from_(self.bucket)

        try:
            storage.upload(key, data, {"content-type": content_type, "upsert": "true"})
        except Exception as e:
            logger.error("Supabase upload failed for %s: %s", key, e)
            raise StorageError(f"Failed to upload resume file: {e}") from e

        try:
            public_url = storage.get_public_url(key)
        except Exception as e:
            raise StorageError(f"Failed to resolve public URL for {key}: {e}") from e

        try:
            response = (
                self.client.table(self.table)
                .insert({"name": name, "file_name": file_name, "file_url": public_url})
                .execute()
            )
        except Exception as e:
            logger.error("Supabase metadata insert failed: %s", e)
            raise StorageError(f"Failed to save resume metadata: {e}") from e

        if not response.data:
            raise StorageError("Resume metadata insert returned no row")

        record = self._to_record(response.data[0])
        logger.info("Stored resume %s at %s", record.id, public_url)
        return record

    def get(self, resume_id: str) -> ResumeRecord:
        try:
            response = (
                self.client.table(self.table)
                .select("*")
                .eq("id", resume_id)
                .limit(1)
                .execute()
            )
        except APIError as e:
            if e.code == INVALID_TEXT_REPRESENTATION:
                raise NotFoundError(f"Resume {resume_id} not found") from e
            raise StorageError(f"Failed to load resume {resume_id}: {e}") from e
        except Exception as e:
            raise StorageError(f"Failed to load resume {resume_id}: {e}") from e

        if not response.data:
            raise NotFoundError(f"Resume {resume_id} not found")
        return self._to_record(response.data[0])

    def list_all(self) -> list[ResumeRecord]:
        try:
            response = (
                self.client.table(self.table)
                .select("*")
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to list resumes: {e}") from e
        return [self._to_record(row) for row in response.data or []]

    def delete(self, resume_id: str) -> None:
        raise StorageError("Deleting resumes is not supported by the Supabase store")


# =============================================================================
# Dependency
# =============================================================================


@lru_cache
def get_supabase_client(url: str, key: str) -> Client:
    """Create one Supabase client per URL/key pair."""
    return create_client(url, key)


def get_resume_store(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ResumeStore:
    """FastAPI dependency returning the configured resume store."""
    if settings.resolved_storage_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise UnconfiguredError(
                "Supabase storage selected but SUPABASE_URL or "
                "SUPABASE_SERVICE_ROLE_KEY is not set."
            )
        client = get_supabase_client(settings.supabase_url, settings.supabase_service_role_key)
        return SupabaseResumeStore(client, settings.supabase_bucket, settings.supabase_table)
    return DatabaseResumeStore(db)
