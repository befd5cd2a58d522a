# erp_admin/schemas/user_schema.py
from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, EmailStr, Field, field_validator

from erp_admin.schemas.product_schema import WireModel


class UserIn(WireModel):
    email: EmailStr
    name: str = Field(..., min_length=1)
    roles: List[str] = Field(default_factory=list)
    last_login: Optional[datetime] = None

    @field_validator("roles")
    @classmethod
    def _normalise_roles(cls, v: List[str]) -> List[str]:
        # role order carries no meaning
        return sorted(set(v))


class User(UserIn):
    id: Optional[str] = Field(None, validation_alias=AliasChoices("_id", "id"))

    def has_role(self, role: str) -> bool:
        return role in self.roles
