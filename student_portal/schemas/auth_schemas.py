from pydantic import ConfigDict, Field
from .camel_base_model import CamelCaseBaseModel as BaseModel


class LoginRequest(BaseModel):
    """Login request schema"""

    email: str = Field(..., min_length=1, description="Account email")
    password: str = Field(..., min_length=1, description="Password")


class UserResponse(BaseModel):
    """User response schema"""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="User ID")
    email: str = Field(..., description="Account email")
    display_name: str = Field("", description="Name shown in the sidebar")
    is_active: bool = Field(..., description="User active status")
