import pytest

from ack_generator.helpers import (
    capitalize_first,
    go_identifier,
    go_string_literal,
    to_pascal_case,
    to_snake_case,
    unique_name,
)


class TestNaming:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Widget", "widget"),
            ("DBInstance", "db_instance"),
            ("FooBar2", "foo_bar2"),
        ],
    )
    def test_to_snake_case(self, name, expected):
        assert to_snake_case(name) == expected

    def test_capitalize_first(self):
        assert capitalize_first("vpcId") == "VpcId"
        assert capitalize_first("") == ""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("vpc_id", "VpcId"),
            ("DBInstance", "DBInstance"),
            ("a-b c", "ABC"),
            ("x.y/z", "XYZ"),
        ],
    )
    def test_to_pascal_case(self, name, expected):
        assert to_pascal_case(name) == expected


class TestGoIdentifier:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("widget", "Widget"),
            ("", "Field"),
            ("---", "Field"),
            ("123abc", "X123abc"),
            ("string", "String_"),
            ("Interface", "Interface_"),
            ("types", "Types"),
        ],
    )
    def test_type_names(self, name, expected):
        assert go_identifier(name) == expected

    def test_field_names_skip_reserved_check(self):
        assert go_identifier("type", check_reserved=False) == "Type"


class TestUniqueName:
    def test_free_name_is_kept(self):
        assert unique_name("Widget", set()) == "Widget"

    def test_suffix_starts_at_two(self):
        assert unique_name("Widget", {"Widget"}) == "Widget2"
        assert unique_name("Widget", {"Widget", "Widget2"}) == "Widget3"


class TestGoStringLiteral:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("red", '"red"'),
            ('say "hi"', '"say \\"hi\\""'),
            ("a\\b\nc", '"a\\\\b\\nc"'),
            ("café", '"café"'),
        ],
    )
    def test_quotes_and_escapes(self, value, expected):
        assert go_string_literal(value) == expected
