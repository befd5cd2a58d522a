# erp_admin/schemas/auth_schema.py
from typing import List, Optional

from pydantic import AliasChoices, EmailStr, Field

from erp_admin.schemas.product_schema import WireModel


class LoginIn(WireModel):
    email: EmailStr
    password: str = Field(..., min_length=6)


class RegisterIn(LoginIn):
    name: str = Field(..., min_length=1)


class SessionUser(WireModel):
    id: Optional[str] = Field(None, validation_alias=AliasChoices("_id", "id"))
    email: str
    first_name: str = ""
    last_name: str = ""
    roles: List[str] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.email


class AuthTokens(WireModel):
    access_token: str
    refresh_token: str


class LoginData(WireModel):
    user: SessionUser
    tokens: AuthTokens


class LoginResponse(WireModel):
    success: bool
    message: Optional[str] = None
    data: Optional[LoginData] = None
