from typing import Any, Dict, Optional

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from .camel_base_model import CamelCaseBaseModel as BaseModel

INDIAN_STATES = (
    "Andhra Pradesh", "Arunachal Pradesh", "Assam", "Bihar", "Chhattisgarh",
    "Goa", "Gujarat", "Haryana", "Himachal Pradesh", "Jharkhand", "Karnataka",
    "Kerala", "Madhya Pradesh", "Maharashtra", "Manipur", "Meghalaya", "Mizoram",
    "Nagaland", "Odisha", "Punjab", "Rajasthan", "Sikkim", "Tamil Nadu", "Telangana",
    "Tripura", "Uttar Pradesh", "Uttarakhand", "West Bengal",
)
CLASS_NAMES = ("9", "10", "11", "12")
SECTIONS = ("A", "B", "C", "D")

# Order matches the form layout
STUDENT_FIELDS = (
    "student_id",
    "first_name",
    "last_name",
    "email",
    "phone_number",
    "address",
    "zip",
    "city",
    "state",
    "class_name",
    "section",
    "roll_number",
)

FIELD_LABELS = {
    "student_id": "Student ID",
    "first_name": "First Name",
    "last_name": "Last Name",
    "email": "Email",
    "phone_number": "Phone Number",
    "address": "Address",
    "zip": "ZIP code",
    "city": "City",
    "state": "State",
    "class_name": "Class",
    "section": "Section",
    "roll_number": "Roll Number",
}


def field_alias(name: str) -> str:
    """camelCase key used for ``name`` in documents and payloads."""
    return to_camel(name)


class StudentFields(BaseModel):
    """Every user-editable attribute of a student record."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    student_id: str = ""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone_number: str = ""
    address: str = ""
    zip: str = ""
    city: str = ""
    state: str = ""
    class_name: str = ""
    section: str = ""
    roll_number: str = ""

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, include=set(STUDENT_FIELDS))


class StudentRecord(StudentFields):
    """A persisted student; ``id`` is assigned by the document store."""

    id: Optional[str] = Field(default=None, description="Document ID")

    @classmethod
    def from_document(cls, document_id: str, data: Dict[str, Any]) -> "StudentRecord":
        body = {key: value for key, value in data.items() if key != "id"}
        return cls.model_validate({**body, "id": document_id})

    def fields(self) -> StudentFields:
        return StudentFields.model_validate(self.model_dump(exclude={"id"}))


class StudentPayload(BaseModel):
    """Incoming form values; any subset of fields may be present."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    student_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    zip: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    class_name: Optional[str] = None
    section: Optional[str] = None
    roll_number: Optional[str] = None

    def provided(self) -> Dict[str, str]:
        """snake_case values that were sent and are not null."""
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None
        }
