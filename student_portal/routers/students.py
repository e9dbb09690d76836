from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Request, status

from student_portal.providers.auth_state_provider import get_current_user
from student_portal.providers.postal_lookup_provider import (
    PostalLookupProvider,
    get_postal_lookup_provider,
)
from student_portal.schemas.student_schemas import StudentPayload, StudentRecord
from student_portal.services.student_repository import (
    StudentRepository,
    get_student_repository,
)
from student_portal.utils.errors import (
    ConfirmationRequiredError,
    FieldValidationError,
    NotFoundError,
    WriteError,
)
from student_portal.utils.notifications import Notifier, get_notifier
from student_portal.utils.responses import ResponseBuilder
from student_portal.views.student_list import DELETE_CONFIRM_PROMPT, StudentListView
from student_portal.views.student_modals import (
    AddStudentModal,
    EditStudentModal,
    StudentFormModal,
    SubmitOutcome,
    ViewStudentModal,
)

students_router = APIRouter(dependencies=[Depends(get_current_user)])

Repository = Annotated[StudentRepository, Depends(get_student_repository)]
Lookup = Annotated[PostalLookupProvider, Depends(get_postal_lookup_provider)]
NotifierDep = Annotated[Notifier, Depends(get_notifier)]


def _record_data(record: StudentRecord) -> dict:
    return record.model_dump(by_alias=True)


async def _load_record(repository: StudentRepository, student_id: str) -> StudentRecord:
    record = await repository.get_by_id(student_id)
    if record is None:
        raise NotFoundError(
            f"Student document with ID '{student_id}' does not exist",
            "STUDENT_NOT_FOUND",
        )
    return record


def _raise_for_outcome(modal: StudentFormModal, outcome: SubmitOutcome) -> None:
    if outcome is SubmitOutcome.INVALID:
        raise FieldValidationError(modal.form.error_payload())
    if outcome is SubmitOutcome.FAILED:
        raise modal.last_error


@students_router.get("/", summary="List every student")
async def list_students(request: Request, repository: Repository):
    """All students in backend order; no sorting or pagination"""
    students = await repository.list_all()
    return ResponseBuilder.success(
        request=request,
        data=[_record_data(student) for student in students],
        message=f"Retrieved {len(students)} students",
    )


@students_router.get("/{student_id}", summary="View one student")
async def view_student(
    request: Request,
    repository: Repository,
    student_id: str = Path(..., description="Document ID"),
):
    record = await _load_record(repository, student_id)
    modal = ViewStudentModal()
    details = modal.open(record)
    modal.close()

    return ResponseBuilder.success(
        request=request,
        data={
            "student": _record_data(record),
            "details": [{"label": label, "value": value} for label, value in details],
        },
        message="Student retrieved",
    )


@students_router.post(
    "/", status_code=status.HTTP_201_CREATED, summary="Add a student"
)
async def add_student(
    request: Request,
    payload: StudentPayload,
    repository: Repository,
    lookup: Lookup,
    notifier: NotifierDep,
):
    """
    Run the add form with the submitted values.

    A 6 character zip is looked up first and may overwrite city/state.
    Invalid fields come back as 422 with one error per field.
    """
    modal = AddStudentModal(repository, notifier, lookup=lookup)
    form = modal.open()
    await form.update(payload.provided())

    outcome = await modal.submit()
    _raise_for_outcome(modal, outcome)

    record = await _load_record(repository, modal.created_id)
    return ResponseBuilder.success(
        request=request,
        data=_record_data(record),
        message="Student added successfully!",
        notifications=notifier.dump(),
        status_code=status.HTTP_201_CREATED,
    )


@students_router.patch("/{student_id}", summary="Edit a student")
async def edit_student(
    request: Request,
    payload: StudentPayload,
    repository: Repository,
    lookup: Lookup,
    notifier: NotifierDep,
    student_id: str = Path(..., description="Document ID"),
):
    """Only fields that changed are written; omitted fields keep their values"""
    record = await _load_record(repository, student_id)

    modal = EditStudentModal(repository, notifier, lookup=lookup)
    form = modal.open(record)
    await form.update(payload.provided())

    outcome = await modal.submit()
    _raise_for_outcome(modal, outcome)

    updated = await _load_record(repository, student_id)
    return ResponseBuilder.success(
        request=request,
        data=_record_data(updated),
        message="Student updated successfully!",
        notifications=notifier.dump(),
    )


@students_router.delete("/{student_id}", summary="Delete a student")
async def delete_student(
    request: Request,
    repository: Repository,
    notifier: NotifierDep,
    student_id: str = Path(..., description="Document ID"),
    confirm: bool = Query(False, description="Must be true to delete"),
):
    """Delete after explicit confirmation and return the reloaded list"""
    list_view = StudentListView(repository, notifier)
    deleted = await list_view.delete(student_id, confirm=lambda prompt: confirm)

    if not confirm:
        raise ConfirmationRequiredError(DELETE_CONFIRM_PROMPT)
    if not deleted:
        raise list_view.last_error or WriteError("Deletion failed")

    return ResponseBuilder.success(
        request=request,
        data={
            "id": student_id,
            "students": [_record_data(student) for student in list_view.students],
        },
        message="Student deleted successfully",
        notifications=notifier.dump(),
    )
