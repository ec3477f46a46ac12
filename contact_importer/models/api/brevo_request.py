"""
Brevo API request models.
Bodies sent to the /contacts endpoints, serialized with model_dump(by_alias=True).
"""

from pydantic import BaseModel, ConfigDict, Field


class ContactAttributes(BaseModel):
    """Brevo contact attributes (upper-case keys on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    first_name: str = Field(default="", alias="FIRSTNAME")
    last_name: str = Field(default="", alias="LASTNAME")


class CreateContactRequest(BaseModel):
    """Body of POST /contacts."""

    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(..., min_length=3, description="Contact email address")
    attributes: ContactAttributes = Field(default_factory=ContactAttributes)
    list_ids: list[int] = Field(..., min_length=1, alias="listIds")
    update_enabled: bool = Field(default=True, alias="updateEnabled")


class UpdateContactListsRequest(BaseModel):
    """Body of PUT /contacts/{email}; only adds list membership."""

    model_config = ConfigDict(populate_by_name=True)

    list_ids: list[int] = Field(..., min_length=1, alias="listIds")
