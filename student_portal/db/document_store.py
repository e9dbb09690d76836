from dataclasses import dataclass, field
from typing import Any, Dict, List, NoReturn, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from student_portal.db.models import Document
from student_portal.utils.errors import DatabaseError
from student_portal.utils.logging import get_logger

logger = get_logger()


@dataclass
class DocumentSnapshot:
    id: str
    data: Dict[str, Any] = field(default_factory=dict)


class DocumentStore:
    """
    Collection-scoped document database client.

    Documents are schemaless JSON objects keyed by a store-assigned ID. Reads
    return copies, so callers may mutate snapshots freely. Any backend failure
    is rolled back and surfaces as ``DatabaseError``.
    """

    def __init__(self, db_session: Session, collection: str):
        self.db = db_session
        self.collection = collection

    async def add_document(self, data: Dict[str, Any]) -> str:
        """Insert a new document and return its generated ID."""
        try:
            document = Document(collection=self.collection, data=dict(data))
            self.db.add(document)
            self.db.commit()
            self.db.refresh(document)
        except SQLAlchemyError as e:
            self._rollback("add", e)

        logger.debug(f"Added document {document.id} to '{self.collection}'")
        return document.id

    async def get_all_documents(self) -> List[DocumentSnapshot]:
        """Every document in the collection, in whatever order the backend yields."""
        try:
            result = self.db.execute(
                select(Document).where(Document.collection == self.collection)
            )
            documents = result.scalars().all()
        except SQLAlchemyError as e:
            self._rollback("list", e)

        return [DocumentSnapshot(id=doc.id, data=dict(doc.data or {})) for doc in documents]

    async def get_document(self, document_id: str) -> Optional[DocumentSnapshot]:
        try:
            document = self._find(document_id)
        except SQLAlchemyError as e:
            self._rollback("get", e)

        if document is None:
            return None
        return DocumentSnapshot(id=document.id, data=dict(document.data or {}))

    async def update_document(self, document_id: str, fields: Dict[str, Any]) -> None:
        """Merge ``fields`` into an existing document; other keys are kept."""
        try:
            document = self._find(document_id)
            if document is None:
                raise DatabaseError(
                    f"No document to update: {self.collection}/{document_id}",
                    "DOCUMENT_NOT_FOUND",
                )
            # Reassign so the JSON column is flagged dirty
            document.data = {**(document.data or {}), **fields}
            self.db.commit()
        except SQLAlchemyError as e:
            self._rollback("update", e)

        logger.debug(f"Updated document {document_id} in '{self.collection}': {sorted(fields)}")

    async def delete_document(self, document_id: str) -> None:
        """Delete a document; deleting a missing ID is not an error."""
        try:
            document = self._find(document_id)
            if document is not None:
                self.db.delete(document)
                self.db.commit()
        except SQLAlchemyError as e:
            self._rollback("delete", e)

        logger.debug(f"Deleted document {document_id} from '{self.collection}'")

    def _find(self, document_id: str) -> Optional[Document]:
        result = self.db.execute(
            select(Document).where(
                Document.collection == self.collection, Document.id == document_id
            )
        )
        return result.scalar_one_or_none()

    def _rollback(self, operation: str, error: SQLAlchemyError) -> NoReturn:
        self.db.rollback()
        logger.error(f"Document store {operation} failed on '{self.collection}': {error}")
        raise DatabaseError(f"Failed to {operation} document: {error}") from error
