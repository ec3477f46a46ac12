"""
Brevo API response models.
Used to recognise structured error bodies returned by the contacts API.
"""

from pydantic import BaseModel, Field


class BrevoErrorResponse(BaseModel):
    """Error body returned by Brevo on 4xx/5xx responses."""

    code: str = Field(..., description="Machine readable error code (e.g. duplicate_parameter)")
    message: str = Field(default="", description="Human readable error message")


class CreateContactResponse(BaseModel):
    """Body of a 201 response to POST /contacts (204 has no body)."""

    id: int | None = Field(default=None, description="Brevo contact ID")
