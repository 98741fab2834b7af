"""Tests for field definitions and option normalization."""

import pytest

from formbuilder.config import DEFAULT_OPTIONS
from formbuilder.errors import FieldDefinitionError
from formbuilder.fields import (
    field_input_type,
    new_field,
    normalize_field,
    option_choices,
    option_collisions,
    option_value,
    parse_fields,
    parse_fields_json,
)
from formbuilder.utils import new_field_id


class TestNewField:
    def test_defaults(self):
        field = new_field("email")
        assert field["label"] == "New Email"
        assert field["placeholder"] == "Enter email"
        assert field["required"] is False
        assert "options" not in field

    def test_option_types_get_default_options(self):
        assert new_field("radio", "Size")["options"] == DEFAULT_OPTIONS

    def test_unknown_type(self):
        with pytest.raises(FieldDefinitionError):
            new_field("button")

    def test_ids_avoid_existing(self):
        first = new_field("text")
        second = new_field("text", existing_ids=[first["id"]])
        assert first["id"] != second["id"]


class TestFieldIds:
    def test_generator_is_strictly_increasing(self):
        ids = [int(new_field_id()) for _ in range(50)]
        assert ids == sorted(set(ids))

    def test_generator_skips_taken_ids(self):
        taken = new_field_id()
        following = str(int(taken) + 1)
        assert new_field_id([following]) not in {taken, following}


class TestNormalizeField:
    def test_drops_options_for_plain_types(self):
        field = normalize_field({"id": "1", "type": "text", "options": ["a"], "order": "2"})
        assert "options" not in field
        assert field["order"] == 2

    def test_keeps_options_for_select(self):
        field = normalize_field({"id": "1", "type": "select", "options": ["A", "B"]})
        assert field["options"] == ["A", "B"]

    def test_rejects_bad_order(self):
        with pytest.raises(FieldDefinitionError):
            normalize_field({"id": "1", "type": "text", "order": "first"})


class TestParseFields:
    def test_valid_payload(self):
        fields, errors = parse_fields(
            [
                {"id": "1", "type": "text", "label": "Name", "required": True, "order": 1},
                {"type": "checkbox", "label": ""},
            ]
        )
        assert errors == []
        assert fields[0]["required"] is True
        assert fields[1]["id"]
        assert fields[1]["order"] == 2

    def test_reports_every_problem(self):
        fields, errors = parse_fields(
            [
                {"id": "1", "type": "text"},
                {"id": "1", "type": "text"},
                {"id": "2", "type": "button"},
                "nope",
            ]
        )
        assert [field["id"] for field in fields] == ["1"]
        assert len(errors) == 3
        assert "duplicate id" in errors[0]

    def test_not_a_list(self):
        assert parse_fields({"id": "1"}) == ([], ["Field definitions must be a list"])

    def test_invalid_json(self):
        assert parse_fields_json("[{")[1] == ["Field definitions are not valid JSON"]


class TestOptions:
    def test_option_value(self):
        assert option_value("Very  Happy\tCustomer") == "very-happy-customer"

    def test_choices(self):
        field = {"id": "1", "type": "select", "options": ["Option 1", "Other"]}
        assert option_choices(field) == [("Option 1", "option-1"), ("Other", "other")]

    def test_choices_empty_for_plain_fields(self):
        assert option_choices({"id": "1", "type": "text"}) == []

    def test_collisions_are_reported_not_fixed(self):
        field = {"id": "1", "type": "radio", "options": ["A B", "a-b", "C"]}
        assert option_collisions(field) == {"a-b": ["A B", "a-b"]}
        assert [value for _, value in option_choices(field)] == ["a-b", "a-b", "c"]


@pytest.mark.parametrize(
    "field_type,expected",
    [("email", "email"), ("number", "number"), ("date", "date"), ("textarea", "text"), ("text", "text")],
)
def test_field_input_type(field_type, expected):
    assert field_input_type({"type": field_type}) == expected
