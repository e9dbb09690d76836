import enum
import re
from typing import Awaitable, Callable, Dict, Mapping, Optional, Set

from student_portal.providers.postal_lookup_provider import PIN_CODE_LENGTH, PostalLookupProvider
from student_portal.schemas.student_schemas import (
    CLASS_NAMES,
    FIELD_LABELS,
    INDIAN_STATES,
    SECTIONS,
    STUDENT_FIELDS,
    StudentFields,
    StudentRecord,
    field_alias,
)
from student_portal.utils.logging import get_logger

logger = get_logger()

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = re.compile(r"\d{10}", re.ASCII)
ZIP_PATTERN = re.compile(r"\d{6}", re.ASCII)

FORM_DEFAULTS: Dict[str, str] = {
    **{name: "" for name in STUDENT_FIELDS},
    "class_name": "9",
    "section": "A",
}

CHOICES = {
    "state": (INDIAN_STATES, "Select a valid state"),
    "class_name": (CLASS_NAMES, "Select a valid class"),
    "section": (SECTIONS, "Select a valid section"),
}


class FormMode(enum.Enum):
    ADD = "add"
    EDIT = "edit"


def validate_field(name: str, value: Optional[str]) -> Optional[str]:
    """Error message for one field, or None when the value is acceptable."""
    if value is None or not value.strip():
        return f"{FIELD_LABELS[name]} is required"

    if name == "email" and not EMAIL_PATTERN.fullmatch(value):
        return "Invalid email format"
    if name == "phone_number" and not PHONE_PATTERN.fullmatch(value):
        return "Phone number must be 10 digits"
    if name == "zip" and not ZIP_PATTERN.fullmatch(value):
        return "PIN code must be exactly 6 digits"
    if name in CHOICES:
        allowed, message = CHOICES[name]
        if value not in allowed:
            return message
    return None


class StudentForm:
    """Field values, per-field errors and submission for one student.

    The same form serves both flows; ``mode`` says which one, and in EDIT mode
    ``record_id`` names the document being changed. Values are keyed by
    snake_case field name.
    """

    def __init__(
        self,
        mode: FormMode,
        initial: Optional[StudentRecord] = None,
        lookup: Optional[PostalLookupProvider] = None,
    ):
        if mode is FormMode.EDIT and (initial is None or not initial.id):
            raise ValueError("Invalid student ID")

        self.mode = mode
        self.record_id = initial.id if mode is FormMode.EDIT else None
        self.lookup = lookup
        self._initial: Dict[str, str] = (
            initial.fields().model_dump() if mode is FormMode.EDIT else dict(FORM_DEFAULTS)
        )
        self.values: Dict[str, str] = dict(self._initial)
        self.errors: Dict[str, str] = {}
        self.dirty = False
        self.submitting = False
        self.lookup_attempts = 0
        self._looked_up: Set[str] = set()

    @classmethod
    def for_add(cls, lookup: Optional[PostalLookupProvider] = None) -> "StudentForm":
        return cls(FormMode.ADD, lookup=lookup)

    @classmethod
    def for_edit(
        cls, record: StudentRecord, lookup: Optional[PostalLookupProvider] = None
    ) -> "StudentForm":
        return cls(FormMode.EDIT, initial=record, lookup=lookup)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    async def set_field(self, name: str, value: Optional[str], validate: bool = False) -> None:
        """Change one field; a 6 character zip triggers address autofill."""
        if name not in FORM_DEFAULTS:
            raise ValueError(f"Unknown student field: {name}")

        value = "" if value is None else str(value)
        self.values[name] = value
        self.dirty = True

        # Once an error is showing, keep it in step with the input
        if validate or name in self.errors:
            self.check_field(name)

        if name == "zip":
            await self._autofill(value)

    async def update(self, values: Mapping[str, Optional[str]]) -> None:
        """Apply several values; zip goes last so autofill wins over typed city/state."""
        for name in STUDENT_FIELDS:
            if name != "zip" and name in values:
                await self.set_field(name, values[name])
        if "zip" in values:
            await self.set_field("zip", values["zip"])

    def check_field(self, name: str) -> Optional[str]:
        error = validate_field(name, self.values.get(name))
        if error:
            self.errors[name] = error
        else:
            self.errors.pop(name, None)
        return error

    def validate(self) -> Dict[str, str]:
        for name in STUDENT_FIELDS:
            self.check_field(name)
        return dict(self.errors)

    def error_payload(self) -> Dict[str, str]:
        """Errors keyed by the camelCase names the client uses."""
        return {field_alias(name): message for name, message in self.errors.items()}

    def to_fields(self) -> StudentFields:
        return StudentFields.model_validate(self.values)

    def changed_fields(self) -> Dict[str, str]:
        """camelCase document keys whose value differs from the loaded record."""
        return {
            field_alias(name): value
            for name, value in self.values.items()
            if value is not None and value != self._initial.get(name)
        }

    async def submit(self, handler: Callable[["StudentForm"], Awaitable[None]]) -> bool:
        """Validate, then hand the form to ``handler``.

        Returns False without calling ``handler`` while any field is invalid
        or a submission is already running. Exceptions from ``handler``
        propagate with the values left as they were.
        """
        if self.validate():
            logger.debug(f"Submission blocked by invalid fields: {sorted(self.errors)}")
            return False
        if self.submitting:
            return False

        self.submitting = True
        try:
            await handler(self)
        finally:
            self.submitting = False
        return True

    def reset(self) -> None:
        self.values = dict(self._initial)
        self.errors = {}
        self.dirty = False
        self._looked_up.clear()

    async def _autofill(self, zip_value: str) -> None:
        if len(zip_value) != PIN_CODE_LENGTH or self.lookup is None:
            return
        if zip_value in self._looked_up:
            return

        self._looked_up.add(zip_value)
        self.lookup_attempts += 1
        resolved = await self.lookup.resolve(zip_value)
        if resolved is None:
            return

        if self.values.get("zip") != zip_value:
            logger.debug(f"Discarding stale autofill for '{zip_value}'")
            return

        self.values["city"] = resolved.city
        self.values["state"] = resolved.state
        for name in ("city", "state"):
            if name in self.errors:
                self.check_field(name)
