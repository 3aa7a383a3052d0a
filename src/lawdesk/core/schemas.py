"""Shared pydantic types for the JSON API.

Request and response bodies use camelCase keys on the wire.
"""

from typing import Annotated

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from lawdesk.config import settings


def _check_email(value: str) -> str:
    # Reserved ``.test`` domains are accepted outside production so that
    # demo and test organizations can use them.
    try:
        result = validate_email(
            value,
            check_deliverability=False,
            test_environment=settings.environment != "production",
        )
    except EmailNotValidError as e:
        raise ValueError(str(e)) from e
    return result.normalized


EmailAddress = Annotated[str, AfterValidator(_check_email)]


class CamelModel(BaseModel):
    """Base schema with camelCase aliases; snake_case names are accepted too."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    """Plain acknowledgement."""

    message: str
