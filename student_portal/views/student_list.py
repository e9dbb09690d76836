import enum
import inspect
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from student_portal.config.settings import settings
from student_portal.providers.postal_lookup_provider import PostalLookupProvider
from student_portal.schemas.student_schemas import StudentRecord
from student_portal.services.student_repository import StudentRepository
from student_portal.utils.errors import DatabaseError, NotFoundError, WriteError
from student_portal.utils.logging import get_logger
from student_portal.utils.notifications import Notifier
from student_portal.views.student_modals import (
    AddStudentModal,
    EditStudentModal,
    ViewStudentModal,
)

logger = get_logger()

ROW_ACTIONS = ("view", "edit", "delete")
DELETE_CONFIRM_PROMPT = "Are you sure you want to delete this student?"

Confirm = Callable[[str], Union[bool, Awaitable[bool]]]


class Layout(enum.Enum):
    TABLE = "table"
    CARDS = "cards"
    EMPTY = "empty"


class StudentListView:
    """Owns the displayed student list.

    The list is never patched locally: every mutation ends with a full
    reload, and whichever reload finishes last wins.
    """

    def __init__(
        self,
        repository: StudentRepository,
        notifier: Notifier,
        lookup: Optional[PostalLookupProvider] = None,
        breakpoint_px: Optional[int] = None,
    ):
        self.repository = repository
        self.notifier = notifier
        self.lookup = lookup
        self.breakpoint_px = (
            breakpoint_px if breakpoint_px is not None else settings.MOBILE_BREAKPOINT_PX
        )
        self.students: List[StudentRecord] = []
        self.mounted = False
        self.last_error: Optional[Exception] = None

    async def mount(self) -> None:
        if self.mounted:
            return
        self.mounted = True
        await self.refresh()

    async def refresh(self) -> None:
        try:
            students = await self.repository.list_all()
        except DatabaseError as e:
            logger.error(f"Error fetching students: {e.message}")
            self.notifier.error("Failed to fetch students data")
            return
        self.students = students

    def layout_for(self, viewport_width: Optional[int]) -> Layout:
        if not self.students:
            return Layout.EMPTY
        if viewport_width is not None and viewport_width < self.breakpoint_px:
            return Layout.CARDS
        return Layout.TABLE

    def render(self, viewport_width: Optional[int] = None) -> Dict[str, Any]:
        layout = self.layout_for(viewport_width)
        view: Dict[str, Any] = {"layout": layout.value, "count": len(self.students)}

        if layout is Layout.EMPTY:
            view["callToAction"] = {
                "action": "add",
                "title": "No students found",
                "label": "Add Your First Student",
            }
            return view

        view["addAction"] = "add"
        if layout is Layout.TABLE:
            view["columns"] = [
                "ID", "Name", "Email", "Phone", "Address",
                "Class", "Section", "Roll No", "Actions",
            ]
            view["rows"] = [self._table_row(student) for student in self.students]
        else:
            view["cards"] = [self._card(student) for student in self.students]
        return view

    async def delete(self, student_id: str, confirm: Confirm) -> bool:
        """Delete after an explicit confirmation, then reload the whole list.

        Returns True only when the delete went through.
        """
        self.last_error = None
        if not student_id:
            self.last_error = ValueError("Invalid student ID")
            self.notifier.error("Deletion failed: Invalid student ID")
            return False

        answer = confirm(DELETE_CONFIRM_PROMPT)
        if inspect.isawaitable(answer):
            answer = await answer
        if not answer:
            logger.debug(f"Deletion of {student_id} not confirmed")
            return False

        try:
            await self.repository.delete(student_id)
        except (DatabaseError, NotFoundError, WriteError) as e:
            self.last_error = e
            logger.error(f"Error deleting student {student_id}: {e.message}")
            self.notifier.error(f"Deletion failed: {e.message}")
            deleted = False
        else:
            deleted = True

        await self.refresh()
        if deleted:
            self.notifier.success("Student deleted successfully")
        return deleted

    def add_modal(self) -> AddStudentModal:
        return AddStudentModal(
            self.repository, self.notifier, lookup=self.lookup, on_saved=self.refresh
        )

    def edit_modal(self) -> EditStudentModal:
        return EditStudentModal(
            self.repository, self.notifier, lookup=self.lookup, on_saved=self.refresh
        )

    def view_modal(self) -> ViewStudentModal:
        return ViewStudentModal()

    @staticmethod
    def _table_row(student: StudentRecord) -> Dict[str, Any]:
        return {
            "id": student.id,
            "studentId": student.student_id,
            "name": f"{student.first_name} {student.last_name}",
            "email": student.email,
            "phone": student.phone_number,
            "address": f"{student.address}, {student.city}, {student.state} {student.zip}",
            "className": student.class_name,
            "section": student.section,
            "rollNumber": student.roll_number,
            "actions": list(ROW_ACTIONS),
        }

    @staticmethod
    def _card(student: StudentRecord) -> Dict[str, Any]:
        return {
            "id": student.id,
            "title": f"{student.first_name} {student.last_name}",
            "studentId": student.student_id,
            "email": student.email,
            "className": student.class_name,
            "section": student.section,
            "actions": list(ROW_ACTIONS),
        }
