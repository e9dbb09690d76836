import pytest
from unittest.mock import AsyncMock

from sqlalchemy import select
from sqlalchemy.orm import Session

from student_portal.db.document_store import DocumentStore
from student_portal.db.models import Document
from student_portal.schemas.student_schemas import StudentFields
from student_portal.services.student_repository import StudentRepository
from student_portal.utils.errors import DatabaseError, NotFoundError, WriteError

from conftest import student_values


class TestDocumentStore:
    """Test the schemaless collection client."""

    @pytest.mark.asyncio
    async def test_documents_are_scoped_to_their_collection(self, db_session: Session):
        students = DocumentStore(db_session, "students")
        courses = DocumentStore(db_session, "courses")

        await students.add_document({"firstName": "Asha"})
        await courses.add_document({"title": "Physics"})

        listed = await students.get_all_documents()
        assert [doc.data["firstName"] for doc in listed] == ["Asha"]

    @pytest.mark.asyncio
    async def test_update_merges_into_existing_body(self, document_store: DocumentStore):
        doc_id = await document_store.add_document({"firstName": "Asha", "city": "Pune"})

        await document_store.update_document(doc_id, {"city": "Bangalore"})

        snapshot = await document_store.get_document(doc_id)
        assert snapshot.data == {"firstName": "Asha", "city": "Bangalore"}

    @pytest.mark.asyncio
    async def test_update_of_missing_document_raises(self, document_store: DocumentStore):
        with pytest.raises(DatabaseError) as exc_info:
            await document_store.update_document("missing", {"city": "Pune"})
        assert exc_info.value.error_code == "DOCUMENT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_delete_of_missing_document_is_a_no_op(self, document_store: DocumentStore):
        await document_store.delete_document("missing")
        assert await document_store.get_all_documents() == []


class TestStudentRepositoryCreate:
    """Test creating student records."""

    @pytest.mark.asyncio
    async def test_create_returns_new_id_and_stores_camel_case(
        self, repository: StudentRepository, db_session: Session
    ):
        student_id = await repository.create(StudentFields(**student_values()))

        assert student_id
        document = db_session.execute(
            select(Document).where(Document.id == student_id)
        ).scalar_one()
        assert document.data["studentId"] == "S-001"
        assert document.data["phoneNumber"] == "9876543210"
        assert document.data["className"] == "10"
        assert "id" not in document.data

    @pytest.mark.asyncio
    async def test_create_twice_with_same_fields_gives_two_records(
        self, repository: StudentRepository
    ):
        fields = StudentFields(**student_values())

        first = await repository.create(fields)
        second = await repository.create(fields)

        assert first != second
        assert len(await repository.list_all()) == 2

    @pytest.mark.asyncio
    async def test_create_failure_is_reported_as_write_error(self):
        store = AsyncMock(spec=DocumentStore)
        store.add_document.side_effect = DatabaseError("disk full")
        repository = StudentRepository(store)

        with pytest.raises(WriteError) as exc_info:
            await repository.create(StudentFields(**student_values()))
        assert exc_info.value.message == "disk full"


class TestStudentRepositoryRead:
    """Test listing and fetching student records."""

    @pytest.mark.asyncio
    async def test_list_all_on_empty_collection(self, repository: StudentRepository):
        assert await repository.list_all() == []

    @pytest.mark.asyncio
    async def test_list_all_returns_records_with_ids(self, repository: StudentRepository):
        created = await repository.create(StudentFields(**student_values()))

        students = await repository.list_all()

        assert len(students) == 1
        assert students[0].id == created
        assert students[0].first_name == "Asha"
        assert students[0].state == "Karnataka"

    @pytest.mark.asyncio
    async def test_stored_id_key_never_overrides_document_id(
        self, repository: StudentRepository, document_store: DocumentStore
    ):
        doc_id = await document_store.add_document({"id": "spoofed", "firstName": "Asha"})

        record = await repository.get_by_id(doc_id)

        assert record.id == doc_id

    @pytest.mark.asyncio
    async def test_partial_documents_fill_missing_fields_with_blanks(
        self, repository: StudentRepository, document_store: DocumentStore
    ):
        doc_id = await document_store.add_document({"firstName": "Asha", "rollNumber": 7})

        record = await repository.get_by_id(doc_id)

        assert record.roll_number == "7"
        assert record.email == ""

    @pytest.mark.asyncio
    async def test_get_by_id_missing_returns_none(self, repository: StudentRepository):
        assert await repository.get_by_id("missing") is None

    @pytest.mark.asyncio
    async def test_list_failure_propagates(self):
        store = AsyncMock(spec=DocumentStore)
        store.get_all_documents.side_effect = DatabaseError("connection lost")

        with pytest.raises(DatabaseError):
            await StudentRepository(store).list_all()


class TestStudentRepositoryUpdate:
    """Test partial updates."""

    @pytest.mark.asyncio
    async def test_update_changes_only_given_keys(self, repository: StudentRepository):
        student_id = await repository.create(StudentFields(**student_values()))

        await repository.update(student_id, {"city": "Mysore", "section": "C"})

        record = await repository.get_by_id(student_id)
        assert record.city == "Mysore"
        assert record.section == "C"
        assert record.first_name == "Asha"
        assert record.zip == "560001"

    @pytest.mark.asyncio
    async def test_update_drops_none_values(self, repository: StudentRepository):
        student_id = await repository.create(StudentFields(**student_values()))

        await repository.update(student_id, {"city": None, "lastName": "Iyer"})

        record = await repository.get_by_id(student_id)
        assert record.city == "Bangalore"
        assert record.last_name == "Iyer"

    @pytest.mark.asyncio
    async def test_update_with_nothing_to_write_leaves_record_alone(
        self, repository: StudentRepository
    ):
        student_id = await repository.create(StudentFields(**student_values()))
        before = await repository.get_by_id(student_id)

        await repository.update(student_id, {"city": None})

        assert await repository.get_by_id(student_id) == before

    @pytest.mark.asyncio
    async def test_update_missing_record_raises_not_found(self, repository: StudentRepository):
        with pytest.raises(NotFoundError) as exc_info:
            await repository.update("missing", {"city": "Pune"})

        assert exc_info.value.message == "Student document with ID 'missing' does not exist"
        assert await repository.list_all() == []


class TestStudentRepositoryDelete:
    """Test deleting student records."""

    @pytest.mark.asyncio
    async def test_delete_removes_record(self, repository: StudentRepository):
        student_id = await repository.create(StudentFields(**student_values()))

        await repository.delete(student_id)

        assert await repository.get_by_id(student_id) is None
        assert await repository.list_all() == []

    @pytest.mark.asyncio
    async def test_delete_missing_record_succeeds_by_default(
        self, repository: StudentRepository
    ):
        await repository.delete("missing")

    @pytest.mark.asyncio
    async def test_delete_missing_record_can_be_made_strict(
        self, document_store: DocumentStore
    ):
        repository = StudentRepository(document_store, missing_delete_raises=True)

        with pytest.raises(NotFoundError):
            await repository.delete("missing")

    @pytest.mark.asyncio
    async def test_delete_failure_is_reported_as_write_error(self):
        store = AsyncMock(spec=DocumentStore)
        store.delete_document.side_effect = DatabaseError("permission denied")

        with pytest.raises(WriteError):
            await StudentRepository(store).delete("abc")
