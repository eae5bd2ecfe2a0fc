"""User models."""

from typing import Optional
from pydantic import BaseModel, EmailStr

from proposal_desk.models.enums import UserRole


class User(BaseModel):
    """Dashboard user an inquiry can be assigned to."""
    id: str
    email: EmailStr
    name: Optional[str] = None
    role: UserRole = UserRole.SALES
    is_active: bool = True
