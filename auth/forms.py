"""
auth/forms.py -- Input schemas for the signup and login forms.

Each endpoint gets an explicit pydantic model. Input is validated here before
any store is touched, and the first violated constraint becomes the message of
an auth ValidationError.

Constraints:
  name      1-30 characters
  email     well-formed bare address (email-validator via pydantic EmailStr),
            no "Display Name <addr>" form
  password  5-30 characters
"""

from __future__ import annotations

from typing import Any, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from auth.errors import ValidationError

NAME_MAX_LENGTH = 30
PASSWORD_MIN_LENGTH = 5
PASSWORD_MAX_LENGTH = 30

_FormT = TypeVar("_FormT", bound=BaseModel)


class LoginForm(BaseModel):
    """Body of POST /login."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)

    @field_validator("email", mode="before")
    @classmethod
    def email_is_bare_address(cls, value: Any) -> Any:
        # EmailStr also accepts "Name <addr>" and keeps only the address.
        if isinstance(value, str) and ("<" in value or ">" in value):
            raise ValueError("value is not a bare email address")
        return value


class SignupForm(LoginForm):
    """Body of POST /signup. Adds the display name to the login fields."""

    name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)


# Field order for error reporting. pydantic reports errors in declaration
# order, which for SignupForm puts the inherited fields first.
_FIELD_ORDER = ("name", "email", "password")


def parse_form(form_cls: type[_FormT], data: dict[str, Any]) -> _FormT:
    """Validate raw form data against form_cls.

    Raises auth.errors.ValidationError describing the first violated
    constraint, so callers report one problem at a time.
    """
    try:
        return form_cls.model_validate(data)
    except pydantic.ValidationError as exc:
        errors = sorted(exc.errors(), key=_error_rank)
        first = errors[0]
        field = str(first["loc"][0]) if first["loc"] else None
        raise ValidationError(_describe(field, first), field=field) from exc


def _error_rank(error: dict) -> int:
    field = error["loc"][0] if error["loc"] else None
    return _FIELD_ORDER.index(field) if field in _FIELD_ORDER else len(_FIELD_ORDER)


def _describe(field: str | None, error: dict) -> str:
    kind = error["type"]
    if kind == "missing":
        return f"{field} is required"
    if field == "email":
        return "email must be a valid email address"
    if kind == "string_too_short":
        if error["ctx"]["min_length"] == 1:
            return f"{field} must not be empty"
        return f"{field} must be at least {error['ctx']['min_length']} characters long"
    if kind == "string_too_long":
        return f"{field} must be at most {error['ctx']['max_length']} characters long"
    return f"{field}: {error['msg']}" if field else error["msg"]
