from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelCaseBaseModel(BaseModel):
    """
    Base model with camelCase field aliases.

    Student documents are stored and exchanged with camelCase keys
    (``studentId``, ``phoneNumber``, ``className``) while Python code works with
    snake_case attributes:

    - Input: both camelCase and snake_case keys are accepted.
    - Output: ``model_dump(by_alias=True)`` produces camelCase keys.
    - Enum fields hold their plain values, so dumps are JSON-ready.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )
