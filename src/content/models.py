"""Content domain models — pure Pydantic v2 data types.

A site carries exactly one ContentRecord made of three sections that
are updated independently: the header, the navigation list, and the
contact footer.  Update payloads are validated once at the boundary
(``parse_content_update`` / ``parse_section_update``) so the store's
merge logic only ever sees fully-typed structures.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from sitedash.errors import ValidationError

INVALID_NAVBAR_MESSAGE = "Invalid navbar format. Each link must have label and url strings."

DEFAULT_TITLE = "Welcome to My Dashboard"
DEFAULT_IMAGE_URL = "https://via.placeholder.com/800x200?text=Header+Image"


class Section(StrEnum):
    """Independently-updatable section of a content record."""

    HEADER = "header"
    NAVBAR = "navbar"
    FOOTER = "footer"


class Header(BaseModel):
    """Page header: title text and hero image URL."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    image_url: str = Field(alias="imageUrl")


class NavLink(BaseModel):
    """A single navigation link, rendered left-to-right in list order."""

    label: str
    url: str


class Footer(BaseModel):
    """Contact details shown in the page footer."""

    email: str
    phone: str
    address: str


class ContentRecord(BaseModel):
    """The single canonical document of header, navbar, and footer."""

    header: Header
    navbar: list[NavLink]
    footer: Footer

    def to_wire(self) -> dict[str, Any]:
        """Serialize with camelCase aliases, as sent over HTTP and cached."""
        return self.model_dump(mode="json", by_alias=True)


class SyncStatus(BaseModel):
    """Outcome of the most recent remote operation (not part of the record)."""

    loading: bool = False
    last_error: str | None = None
    last_saved_at: datetime | None = None


# ── Update payloads ─────────────────────────────────────────────


class HeaderUpdate(BaseModel):
    """Partial header update; absent or null fields keep their value."""

    model_config = ConfigDict(populate_by_name=True)

    title: str | None = None
    image_url: str | None = Field(default=None, alias="imageUrl")


class FooterUpdate(BaseModel):
    """Partial footer update; absent or null fields keep their value."""

    email: str | None = None
    phone: str | None = None
    address: str | None = None


class NavbarUpdate(BaseModel):
    """Whole-list navbar replacement; absent ``links`` leaves it unchanged."""

    links: list[NavLink] | None = None


class ContentUpdate(BaseModel):
    """Combined update of any subset of the three sections."""

    header: HeaderUpdate | None = None
    navbar: list[NavLink] | None = None
    footer: FooterUpdate | None = None

    @model_validator(mode="before")
    @classmethod
    def _drop_non_list_navbar(cls, data: Any) -> Any:
        """A navbar that is not a list is ignored rather than rejected."""
        if isinstance(data, Mapping) and "navbar" in data:
            if not isinstance(data["navbar"], list):
                data = {k: v for k, v in data.items() if k != "navbar"}
        return data


def merge_fields(current: BaseModel, update: BaseModel) -> Any:
    """Return a copy of ``current`` with every supplied field of ``update`` applied."""
    changes = update.model_dump(exclude_unset=True, exclude_none=True)
    return current.model_copy(update=changes)


def default_record() -> ContentRecord:
    """Return a fresh copy of the built-in default content."""
    return ContentRecord(
        header=Header(title=DEFAULT_TITLE, image_url=DEFAULT_IMAGE_URL),
        navbar=[
            NavLink(label="Home", url="/"),
            NavLink(label="About", url="/about"),
            NavLink(label="Contact", url="/contact"),
        ],
        footer=Footer(
            email="contact@example.com",
            phone="+1 (555) 123-4567",
            address="123 Main Street, City, Country",
        ),
    )


def parse_content_update(data: Any) -> ContentUpdate:
    """Validate a raw combined-update payload.

    Raises:
        ValidationError: If the payload is not an object, or any navbar
            element lacks a string ``label`` or ``url``.
    """
    if isinstance(data, ContentUpdate):
        return data
    if not isinstance(data, Mapping):
        raise ValidationError("Request body must be a JSON object.")
    try:
        return ContentUpdate.model_validate(dict(data))
    except PydanticValidationError as exc:
        raise ValidationError(_describe(exc)) from exc


def parse_section_update(
    section: Section, data: Any
) -> HeaderUpdate | NavbarUpdate | FooterUpdate:
    """Validate a raw single-section payload."""
    model: type[HeaderUpdate | NavbarUpdate | FooterUpdate] = {
        Section.HEADER: HeaderUpdate,
        Section.NAVBAR: NavbarUpdate,
        Section.FOOTER: FooterUpdate,
    }[Section(section)]
    if isinstance(data, model):
        return data
    if not isinstance(data, Mapping):
        raise ValidationError("Request body must be a JSON object.")
    try:
        return model.model_validate(dict(data))
    except PydanticValidationError as exc:
        if section == Section.NAVBAR:
            raise ValidationError(INVALID_NAVBAR_MESSAGE) from exc
        raise ValidationError(_describe(exc, prefix=str(section))) from exc


def _describe(exc: PydanticValidationError, prefix: str = "") -> str:
    errors = exc.errors()
    if any(err["loc"] and err["loc"][0] == "navbar" for err in errors):
        return INVALID_NAVBAR_MESSAGE
    first = errors[0]
    loc = ".".join(str(part) for part in first["loc"])
    if prefix:
        loc = f"{prefix}.{loc}" if loc else prefix
    return f"Invalid {loc or 'payload'}: {first['msg']}"
