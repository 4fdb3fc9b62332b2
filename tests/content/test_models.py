"""Tests for content domain models and update payload parsing."""

import pytest
from sitedash.content.models import (
    INVALID_NAVBAR_MESSAGE,
    ContentRecord,
    ContentUpdate,
    Footer,
    Header,
    HeaderUpdate,
    NavbarUpdate,
    NavLink,
    Section,
    default_record,
    merge_fields,
    parse_content_update,
    parse_section_update,
)
from sitedash.errors import ValidationError


class TestSection:
    def test_enum_values(self):
        assert Section.HEADER == "header"
        assert Section.NAVBAR == "navbar"
        assert Section.FOOTER == "footer"


class TestHeader:
    def test_accepts_alias(self):
        header = Header.model_validate({"title": "T", "imageUrl": "https://x/img.png"})
        assert header.image_url == "https://x/img.png"

    def test_accepts_field_name(self):
        header = Header(title="T", image_url="https://x/img.png")
        assert header.image_url == "https://x/img.png"

    def test_dumps_alias(self):
        header = Header(title="T", image_url="u")
        assert header.model_dump(by_alias=True) == {"title": "T", "imageUrl": "u"}


class TestDefaultRecord:
    def test_navbar_defaults(self):
        record = default_record()
        assert [link.label for link in record.navbar] == ["Home", "About", "Contact"]
        assert [link.url for link in record.navbar] == ["/", "/about", "/contact"]

    def test_header_and_footer_defaults(self):
        record = default_record()
        assert record.header.title == "Welcome to My Dashboard"
        assert record.header.image_url == "https://via.placeholder.com/800x200?text=Header+Image"
        assert record.footer.email == "contact@example.com"
        assert record.footer.phone == "+1 (555) 123-4567"
        assert record.footer.address == "123 Main Street, City, Country"

    def test_returns_fresh_copy(self):
        first = default_record()
        first.navbar.append(NavLink(label="Blog", url="/blog"))
        assert len(default_record().navbar) == 3

    def test_to_wire_uses_camel_case(self):
        wire = default_record().to_wire()
        assert set(wire) == {"header", "navbar", "footer"}
        assert "imageUrl" in wire["header"]


class TestMergeFields:
    def test_only_supplied_fields_change(self):
        header = Header(title="Old", image_url="https://old")
        merged = merge_fields(header, HeaderUpdate(title="New"))
        assert merged.title == "New"
        assert merged.image_url == "https://old"

    def test_null_fields_are_ignored(self):
        footer = Footer(email="a@b.com", phone="1", address="here")
        merged = merge_fields(footer, parse_section_update(Section.FOOTER, {"phone": None}))
        assert merged == footer

    def test_original_is_not_mutated(self):
        header = Header(title="Old", image_url="u")
        merge_fields(header, HeaderUpdate(title="New"))
        assert header.title == "Old"


class TestParseContentUpdate:
    def test_empty_payload(self):
        update = parse_content_update({})
        assert update == ContentUpdate()

    def test_valid_navbar(self):
        update = parse_content_update({"navbar": [{"label": "X", "url": "/x"}]})
        assert update.navbar == [NavLink(label="X", url="/x")]

    def test_non_list_navbar_is_dropped(self):
        update = parse_content_update({"navbar": "nope", "footer": {"email": "a@b.com"}})
        assert update.navbar is None
        assert update.footer is not None
        assert update.footer.email == "a@b.com"

    def test_missing_url_rejected(self):
        with pytest.raises(ValidationError, match="Invalid navbar format"):
            parse_content_update({"navbar": [{"label": "X"}]})

    def test_non_string_label_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_content_update({"navbar": [{"label": 5, "url": "/x"}]})
        assert str(exc_info.value) == INVALID_NAVBAR_MESSAGE

    def test_non_object_payload_rejected(self):
        with pytest.raises(ValidationError):
            parse_content_update(["header"])

    def test_passes_through_parsed_update(self):
        update = ContentUpdate()
        assert parse_content_update(update) is update


class TestParseSectionUpdate:
    def test_header_alias(self):
        update = parse_section_update(Section.HEADER, {"imageUrl": "https://img"})
        assert isinstance(update, HeaderUpdate)
        assert update.image_url == "https://img"

    def test_navbar_requires_list(self):
        with pytest.raises(ValidationError, match="Invalid navbar format"):
            parse_section_update(Section.NAVBAR, {"links": "nope"})

    def test_navbar_absent_links(self):
        update = parse_section_update("navbar", {})
        assert isinstance(update, NavbarUpdate)
        assert update.links is None

    def test_footer_wrong_type(self):
        with pytest.raises(ValidationError, match="footer.email"):
            parse_section_update(Section.FOOTER, {"email": ["a"]})


class TestContentRecord:
    def test_round_trips_through_wire_format(self):
        record = default_record()
        assert ContentRecord.model_validate(record.to_wire()) == record
