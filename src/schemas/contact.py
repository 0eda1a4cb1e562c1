from datetime import date, datetime, timezone

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

# Human-readable messages per field and pydantic error type. Request validation
# and the tests both read from this table.
FIELD_MESSAGES: dict[str, dict[str, str]] = {
    "firstName": {
        "missing": "First name is required",
        "string_type": "First name must be a string",
        "null_value": "First name cannot be null",
        "string_too_short": "First name must be at least 2 characters",
        "string_too_long": "First name cannot exceed 50 characters",
    },
    "lastName": {
        "missing": "Last name is required",
        "string_type": "Last name must be a string",
        "null_value": "Last name cannot be null",
        "string_too_short": "Last name must be at least 2 characters",
        "string_too_long": "Last name cannot exceed 50 characters",
    },
    "email": {
        "missing": "Email is required",
        "string_type": "Email must be a string",
        "null_value": "Email cannot be null",
        "value_error": "Please enter a valid email",
    },
    "favoriteColor": {
        "missing": "Favorite color is required",
        "string_type": "Favorite color must be a string",
        "null_value": "Favorite color cannot be null",
        "string_too_short": "Favorite color is required",
        "string_too_long": "Favorite color cannot exceed 30 characters",
    },
    "birthday": {
        "missing": "Birthday is required",
        "null_value": "Birthday cannot be null",
        "date_type": "Birthday must be a valid date",
        "date_parsing": "Birthday must be a valid date",
        "date_from_datetime_parsing": "Birthday must be a valid date",
        "date_from_datetime_inexact": "Birthday must be a valid date",
        "date_in_future": "Birthday cannot be in the future",
    },
}


def format_validation_errors(errors) -> list[str]:
    """
    Turns pydantic error dicts into a list of readable messages, one per failing rule.

    A string that is empty after trimming reports the field's ``missing`` message.
    Error types missing from ``FIELD_MESSAGES`` keep pydantic's own message.

    :param errors: The errors reported by pydantic, e.g. ``ValidationError.errors()``.
    :type errors: Sequence[dict]
    :return: The messages, in order, without duplicates.
    :rtype: list[str]
    """
    messages = []
    for error in errors:
        loc = [part for part in error.get("loc", ()) if part != "body"]
        field = loc[-1] if loc else None
        error_type = error["type"]
        value = error.get("input")
        if error_type == "string_too_short" and isinstance(value, str) and not value.strip():
            error_type = "missing"
        message = FIELD_MESSAGES.get(field, {}).get(error_type, error["msg"])
        if message not in messages:
            messages.append(message)
    return messages


class ContactBase(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    @field_validator("email", mode="before", check_fields=False)
    @classmethod
    def reject_display_name(cls, value):
        # EmailStr also accepts "Name <addr>"
        if isinstance(value, str) and ("<" in value or ">" in value):
            raise ValueError("Display names are not allowed in email addresses")
        return value

    @field_validator("email", check_fields=False)
    @classmethod
    def lowercase_email(cls, value):
        return value.lower()

    @field_validator("birthday", check_fields=False)
    @classmethod
    def birthday_not_in_future(cls, value):
        if value > datetime.now(timezone.utc).date():
            raise PydanticCustomError("date_in_future", "Birthday cannot be in the future")
        return value


class ContactCreate(ContactBase):
    first_name: str = Field(min_length=2, max_length=50)
    last_name: str = Field(min_length=2, max_length=50)
    email: EmailStr
    favorite_color: str = Field(min_length=1, max_length=30)
    birthday: date


class ContactUpdate(ContactBase):
    first_name: str | None = Field(None, min_length=2, max_length=50)
    last_name: str | None = Field(None, min_length=2, max_length=50)
    email: EmailStr | None = None
    favorite_color: str | None = Field(None, min_length=1, max_length=30)
    birthday: date | None = None

    @field_validator("first_name", "last_name", "email", "favorite_color", "birthday", mode="before")
    @classmethod
    def reject_null(cls, value):
        # omitted fields keep their default, only an explicit null reaches here
        if value is None:
            raise PydanticCustomError("null_value", "Field cannot be null")
        return value

    @model_validator(mode="after")
    def at_least_one_field(self):
        if not self.model_fields_set:
            raise PydanticCustomError("no_fields", "At least one field must be provided for update")
        return self


class ContactResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    first_name: str
    last_name: str
    email: str
    favorite_color: str
    birthday: date
    created_at: datetime
    updated_at: datetime
