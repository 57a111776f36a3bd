"""Tests for reading and decoding API documents."""

import io

import pytest

from ack_generator.exceptions import (
    EmptyOrInvalidDocument,
    InvalidInvocation,
    MalformedDocument,
)
from ack_generator.loader import (
    ContentType,
    content_type_from_path,
    decode_document,
    load_api,
    read_input,
)


YAML_DOCUMENT = b"""
swagger: "2.0"
info:
  title: Bucket API
  x-aws-api-alias: s3
definitions:
  Bucket:
    type: object
    properties:
      name:
        type: string
"""


class TestContentTypeDetection:
    @pytest.mark.parametrize(
        "path, expected",
        [
            ("api.json", ContentType.JSON),
            ("api.JSON", ContentType.JSON),
            ("dir/api.yaml", ContentType.YAML),
            ("api.yml", ContentType.YAML),
            ("api.txt", ContentType.UNKNOWN),
            ("api", ContentType.UNKNOWN),
        ],
    )
    def test_content_type_from_extension(self, path, expected):
        assert content_type_from_path(path) == expected


class TestReadInput:
    def test_reads_stdin_without_hint(self):
        data, content_type = read_input([], stdin=io.BytesIO(b'{"a": 1}'))

        assert data == b'{"a": 1}'
        assert content_type == ContentType.UNKNOWN

    def test_reads_file_with_extension_hint(self, tmp_path):
        path = tmp_path / "api.yaml"
        path.write_bytes(YAML_DOCUMENT)

        data, content_type = read_input([str(path)])

        assert data == YAML_DOCUMENT
        assert content_type == ContentType.YAML

    def test_two_arguments_are_rejected(self):
        with pytest.raises(InvalidInvocation):
            read_input(["a.json", "b.json"])

    def test_missing_file(self, tmp_path):
        with pytest.raises(EmptyOrInvalidDocument, match="Could not read"):
            read_input([str(tmp_path / "missing.json")])


class TestDecodeDocument:
    @pytest.mark.parametrize("data", [b"", b"{"])
    def test_too_short_input(self, data):
        with pytest.raises(EmptyOrInvalidDocument):
            decode_document(data)

    def test_json_is_sniffed_from_first_byte(self):
        assert decode_document(b'  \n{"info": {"title": "x"}}') == {
            "info": {"title": "x"}
        }

    def test_yaml_without_hint(self):
        document = decode_document(YAML_DOCUMENT)

        assert document["info"]["x-aws-api-alias"] == "s3"
        assert document["definitions"]["Bucket"]["type"] == "object"

    def test_yaml_hint_accepts_json_content(self):
        assert decode_document(b'{"a": [1, 2]}', ContentType.YAML) == {"a": [1, 2]}

    def test_malformed_json(self):
        with pytest.raises(MalformedDocument) as exc_info:
            decode_document(b'{"a": ')

        assert exc_info.value.cause

    def test_malformed_after_both_attempts(self):
        with pytest.raises(MalformedDocument) as exc_info:
            decode_document(b"key: [unclosed\n  - : :")

        # Both the YAML and the JSON error are reported.
        assert ";" in exc_info.value.cause

    def test_top_level_must_be_a_mapping(self):
        with pytest.raises(MalformedDocument, match="mapping"):
            decode_document(b"- a\n- b\n")


class TestLoadApi:
    def test_load_yaml_document(self):
        api = load_api(YAML_DOCUMENT)

        assert api.title == "Bucket API"
        assert api.api_alias == "s3"
        assert list(api.definitions) == ["Bucket"]
        assert api.operations == ()

    def test_load_with_custom_alias_extension(self):
        data = b'{"info": {"x-alias": "custom"}}'

        assert load_api(data, alias_extension="x-alias").api_alias == "custom"
