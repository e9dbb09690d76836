import enum
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Optional, Tuple

from student_portal.providers.postal_lookup_provider import PostalLookupProvider
from student_portal.schemas.student_schemas import StudentRecord
from student_portal.services.student_repository import StudentRepository
from student_portal.utils.errors import DatabaseError, NotFoundError, WriteError
from student_portal.utils.logging import get_logger
from student_portal.utils.notifications import Notifier
from student_portal.views.student_form import StudentForm

logger = get_logger()

RefreshCallback = Callable[[], Awaitable[None]]

# Failures that leave the modal open and become a notification
REPOSITORY_ERRORS = (DatabaseError, NotFoundError, WriteError)


class SubmitOutcome(enum.Enum):
    SAVED = "saved"
    INVALID = "invalid"
    FAILED = "failed"


class ModalClosedError(RuntimeError):
    pass


class StudentFormModal(ABC):
    """Open/close lifecycle around a StudentForm wired to the repository.

    The form exists only while the modal is open. After a successful save
    the modal closes and ``on_saved`` runs so the list can reload.
    """

    success_message = ""

    def __init__(
        self,
        repository: StudentRepository,
        notifier: Notifier,
        lookup: Optional[PostalLookupProvider] = None,
        on_saved: Optional[RefreshCallback] = None,
    ):
        self.repository = repository
        self.notifier = notifier
        self.lookup = lookup
        self.on_saved = on_saved
        self.form: Optional[StudentForm] = None
        self.last_error: Optional[Exception] = None

    @property
    def is_open(self) -> bool:
        return self.form is not None

    def close(self) -> None:
        # In-flight submits and lookups are not cancelled
        self.form = None

    async def submit(self) -> SubmitOutcome:
        form = self._require_form()
        self.last_error = None

        try:
            saved = await form.submit(self._save)
        except REPOSITORY_ERRORS as e:
            self.last_error = e
            logger.error(f"{type(self).__name__} save failed: {e.message}")
            self.notifier.error(self._failure_message(e))
            return SubmitOutcome.FAILED

        if not saved:
            return SubmitOutcome.INVALID

        self.notifier.success(self.success_message)
        form.reset()
        self.close()
        if self.on_saved is not None:
            await self.on_saved()
        return SubmitOutcome.SAVED

    def _require_form(self) -> StudentForm:
        if self.form is None:
            raise ModalClosedError(f"{type(self).__name__} is not open")
        return self.form

    @abstractmethod
    async def _save(self, form: StudentForm) -> None:
        """Persist the validated form; repository errors propagate."""

    def _failure_message(self, error: Exception) -> str:
        return f"Error: {getattr(error, 'message', str(error))}"


class AddStudentModal(StudentFormModal):
    success_message = "Student added successfully!"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.created_id: Optional[str] = None

    def open(self) -> StudentForm:
        self.created_id = None
        self.form = StudentForm.for_add(lookup=self.lookup)
        return self.form

    async def _save(self, form: StudentForm) -> None:
        self.created_id = await self.repository.create(form.to_fields())


class EditStudentModal(StudentFormModal):
    success_message = "Student updated successfully!"

    def open(self, record: StudentRecord) -> StudentForm:
        self.form = StudentForm.for_edit(record, lookup=self.lookup)
        return self.form

    async def _save(self, form: StudentForm) -> None:
        # record_id is always set for an edit form
        await self.repository.update(form.record_id, form.changed_fields())

    def _failure_message(self, error: Exception) -> str:
        if isinstance(error, NotFoundError):
            return error.message
        return f"Update failed: {getattr(error, 'message', str(error))}"


class ViewStudentModal:
    """Read-only details of one record."""

    def __init__(self):
        self.record: Optional[StudentRecord] = None

    @property
    def is_open(self) -> bool:
        return self.record is not None

    def open(self, record: StudentRecord) -> List[Tuple[str, str]]:
        self.record = record
        return self.details()

    def close(self) -> None:
        self.record = None

    def details(self) -> List[Tuple[str, str]]:
        record = self.record
        if record is None:
            raise ModalClosedError("ViewStudentModal is not open")

        return [
            ("ID", record.student_id),
            ("Name", f"{record.first_name} {record.last_name}"),
            ("Email", record.email),
            ("Phone", record.phone_number),
            ("Address", f"{record.address}, {record.city}, {record.state} {record.zip}"),
            ("Class", record.class_name),
            ("Section", record.section),
            ("Roll Number", record.roll_number),
        ]
