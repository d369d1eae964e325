"""Unit tests for auth/forms.py -- input schemas and first-error reporting."""

import pytest

from auth.errors import ValidationError
from auth.forms import LoginForm, SignupForm, parse_form


def test_valid_signup_form() -> None:
    form = parse_form(SignupForm, {"name": "Alice", "email": "alice@x.com", "password": "pass1"})
    assert (form.name, form.email, form.password) == ("Alice", "alice@x.com", "pass1")


@pytest.mark.parametrize(
    ("data", "field", "message"),
    [
        ({"name": "", "email": "alice@x.com", "password": "pass1"}, "name", "name must not be empty"),
        ({"name": "a" * 31, "email": "alice@x.com", "password": "pass1"}, "name", "name must be at most 30"),
        ({"name": "Alice", "email": "not-an-email", "password": "pass1"}, "email", "valid email address"),
        ({"name": "Alice", "email": "alice@x.com", "password": "four"}, "password", "at least 5 characters"),
        ({"name": "Alice", "email": "alice@x.com", "password": "p" * 31}, "password", "at most 30 characters"),
        ({"email": "alice@x.com", "password": "pass1"}, "name", "name is required"),
    ],
)
def test_signup_form_rejects(data: dict, field: str, message: str) -> None:
    with pytest.raises(ValidationError) as info:
        parse_form(SignupForm, data)
    assert info.value.field == field
    assert message in info.value.message


def test_first_violation_follows_form_order() -> None:
    """With every field wrong, the name is reported first, as on the form."""
    with pytest.raises(ValidationError) as info:
        parse_form(SignupForm, {"name": "", "email": "bad", "password": "x"})
    assert info.value.field == "name"


def test_boundary_lengths_accepted() -> None:
    parse_form(SignupForm, {"name": "a", "email": "a@x.com", "password": "12345"})
    parse_form(SignupForm, {"name": "a" * 30, "email": "a@x.com", "password": "p" * 30})


def test_login_form_ignores_name() -> None:
    form = parse_form(LoginForm, {"email": "alice@x.com", "password": "pass1", "name": "ignored"})
    assert not hasattr(form, "name")


@pytest.mark.parametrize("email", ["Alice Smith <alice@x.com>", "<alice@x.com>", "alice@x.com>"])
def test_display_name_email_rejected(email: str) -> None:
    with pytest.raises(ValidationError) as info:
        parse_form(LoginForm, {"email": email, "password": "pass1"})
    assert info.value.field == "email"
    assert info.value.message == "email must be a valid email address"
