from typing import Any, Dict, List, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from student_portal.config.settings import settings
from student_portal.db.document_store import DocumentStore
from student_portal.db.session import get_sync_session
from student_portal.schemas.student_schemas import StudentFields, StudentRecord
from student_portal.utils.errors import DatabaseError, NotFoundError, WriteError
from student_portal.utils.logging import get_logger

logger = get_logger()


class StudentRepository:
    """CRUD over the students collection of the document store.

    Every call is a single attempt: no retries and no timeouts at this layer.
    """

    def __init__(self, store: DocumentStore, missing_delete_raises: bool = False):
        self.store = store
        self.missing_delete_raises = missing_delete_raises

    async def list_all(self) -> List[StudentRecord]:
        """Fetch every student. Order is whatever the store returns."""
        snapshots = await self.store.get_all_documents()
        return [StudentRecord.from_document(snap.id, snap.data) for snap in snapshots]

    async def create(self, fields: StudentFields) -> str:
        """Create a student and return the store-assigned ID."""
        try:
            student_id = await self.store.add_document(fields.to_document())
        except DatabaseError as e:
            raise WriteError(e.message) from e

        logger.info(f"Created student {student_id} ({fields.student_id})")
        return student_id

    async def get_by_id(self, student_id: str) -> Optional[StudentRecord]:
        snapshot = await self.store.get_document(student_id)
        if snapshot is None:
            return None
        return StudentRecord.from_document(snapshot.id, snapshot.data)

    async def update(self, student_id: str, partial_fields: Dict[str, Any]) -> None:
        """Write only the keys that are present and not None.

        ``partial_fields`` uses camelCase document keys. Omitted keys keep
        their stored values.
        """
        snapshot = await self.store.get_document(student_id)
        if snapshot is None:
            raise NotFoundError(
                f"Student document with ID '{student_id}' does not exist",
                "STUDENT_NOT_FOUND",
            )

        clean_fields = {
            key: value
            for key, value in partial_fields.items()
            if value is not None and key != "id"
        }
        if not clean_fields:
            logger.info(f"Nothing to update for student {student_id}")
            return

        try:
            await self.store.update_document(student_id, clean_fields)
        except DatabaseError as e:
            raise WriteError(e.message) from e

        logger.info(f"Updated student {student_id}: {sorted(clean_fields)}")

    async def delete(self, student_id: str) -> None:
        """Delete a student.

        A missing ID is treated as success unless ``missing_delete_raises``
        is set, in which case it raises ``NotFoundError``.
        """
        if self.missing_delete_raises and await self.store.get_document(student_id) is None:
            raise NotFoundError(
                f"Student document with ID '{student_id}' does not exist",
                "STUDENT_NOT_FOUND",
            )

        try:
            await self.store.delete_document(student_id)
        except DatabaseError as e:
            raise WriteError(e.message) from e

        logger.info(f"Deleted student {student_id}")


def get_student_repository(
    db: Session = Depends(get_sync_session),
) -> StudentRepository:
    return StudentRepository(
        DocumentStore(db, settings.STUDENTS_COLLECTION),
        missing_delete_raises=settings.DELETE_MISSING_RAISES,
    )
