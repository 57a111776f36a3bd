"""Tests for the Generator orchestrator, the template renderer and the writers."""

import io
import json
from unittest.mock import MagicMock, patch

import pytest
from jinja2 import TemplateNotFound

from ack_generator.config import GeneratorConfig
from ack_generator.exceptions import MalformedDocument, UnresolvedReference
from ack_generator.generator import Generator, GeneratorState
from ack_generator.models import Artifact, DocTemplateVars
from ack_generator.output import DirectoryWriter, StdoutWriter
from ack_generator.templating import TemplateRenderer


def artifacts_by_name(artifacts):
    return {a.name: a.content.decode("utf-8") for a in artifacts}


def create_operation(operation_id: str, schema_name: str) -> dict:
    return {
        "operationId": operation_id,
        "requestBody": {
            "content": {
                "application/json": {
                    "schema": {"$ref": f"#/definitions/{schema_name}"}
                }
            }
        },
    }


class TestGenerator:
    def test_compile_is_repeatable(self, widget_api_bytes):
        generator = Generator()

        first = generator.compile(widget_api_bytes)
        second = generator.compile(widget_api_bytes)

        assert first == second
        assert generator.state == GeneratorState.EXTRACTED

    def test_generate_emits_all_artifacts(self, widget_api_bytes):
        writer = MagicMock()
        generator = Generator()

        artifacts = generator.generate(widget_api_bytes, writer)

        assert [a.name for a in artifacts] == [
            "doc.go",
            "groupversion_info.go",
            "types.go",
            "widget.go",
        ]
        writer.write.assert_called_once_with(artifacts)
        assert generator.state == GeneratorState.DONE

    def test_state_transitions(self, widget_api_bytes):
        generator = Generator()

        with patch.object(
            Generator, "_transition", autospec=True, side_effect=Generator._transition
        ) as spy:
            generator.generate(widget_api_bytes, MagicMock())

        assert [call.args[1] for call in spy.call_args_list] == [
            GeneratorState.LOADED,
            GeneratorState.RESOLVED,
            GeneratorState.EXTRACTED,
            GeneratorState.EMITTING,
            GeneratorState.DONE,
        ]

    def test_artifact_contents(self, widget_api_bytes):
        files = artifacts_by_name(Generator().generate(widget_api_bytes, MagicMock()))

        for content in files.values():
            assert content.startswith("// Code generated by ack-generate. DO NOT EDIT.")
            assert "package v1alpha1" in content

        assert "// +groupName=widgets.services.k8s.aws" in files["doc.go"]
        assert (
            'Group: "widgets.services.k8s.aws", Version: "v1alpha1"'
            in files["groupversion_info.go"]
        )

        types = files["types.go"]
        assert "type Color string" in types
        assert 'Color_Red Color = "red"' in types
        assert "type Tag struct" in types
        assert "type WidgetSpecConfig struct" in types
        # Resource spec and status types live in the resource's own file.
        assert "type WidgetSpec struct" not in types
        assert types.index("type Tag struct") < types.index("type WidgetDescription struct")

        widget = files["widget.go"]
        assert "type WidgetSpec struct" in widget
        assert "type WidgetStatus struct" in widget
        assert "type Widget struct" in widget
        assert "type WidgetList struct" in widget
        assert "// The widget name." in widget
        assert 'Name *string `json:"name"`' in widget
        assert 'Size *int64 `json:"size,omitempty"`' in widget
        assert 'Tags []*Tag `json:"tags,omitempty"`' in widget
        assert 'State *WidgetStatusState `json:"state,omitempty"`' in widget
        assert "// Supported operations: create, read, update, delete" in widget
        assert "SchemeBuilder.Register(&Widget{}, &WidgetList{})" in widget

    def test_resource_files_do_not_replace_package_files(self):
        spec = {
            "paths": {
                "/docs": {"post": create_operation("CreateDoc", "Doc")},
                "/types": {"post": create_operation("CreateTypes", "Types")},
            },
            "definitions": {
                "Doc": {"properties": {"title": {"type": "string"}}},
                "Types": {"properties": {"names": {"type": "string"}}},
            },
        }

        artifacts = Generator().generate(json.dumps(spec).encode(), MagicMock())

        assert [a.name for a in artifacts] == [
            "doc.go",
            "groupversion_info.go",
            "types.go",
            "doc2.go",
            "types2.go",
        ]
        assert "type Doc struct" in artifacts_by_name(artifacts)["doc2.go"]

    def test_generated_type_names_are_declared_once(self):
        spec = {
            "paths": {"/widgets": {"post": create_operation("CreateWidget", "Widget")}},
            "definitions": {
                "Widget": {"properties": {"name": {"type": "string"}}},
                "WidgetList": {
                    "properties": {
                        "items": {
                            "type": "array",
                            "items": {"$ref": "#/definitions/Widget"},
                        }
                    }
                },
                "Size": {"type": "string", "enum": ["foo-bar", "foo_bar"]},
            },
        }

        files = artifacts_by_name(
            Generator().generate(json.dumps(spec).encode(), MagicMock())
        )
        output = "".join(files.values())

        assert output.count("type WidgetList struct") == 1
        assert "type WidgetList2 struct" in files["types.go"]
        assert "Items []*WidgetSpec" in files["types.go"]
        assert 'Size_FooBar Size = "foo-bar"' in files["types.go"]
        assert 'Size_FooBar2 Size = "foo_bar"' in files["types.go"]

    def test_api_version_and_unknown_alias(self):
        config = GeneratorConfig(api_version="v1beta1")
        data = b'{"definitions": {"Tag": {"properties": {"key": {"type": "string"}}}}}'

        files = artifacts_by_name(Generator(config).generate(data, MagicMock()))

        assert list(files) == ["doc.go", "groupversion_info.go", "types.go"]
        assert "package v1beta1" in files["doc.go"]
        assert 'Group: "unknown.services.k8s.aws"' in files["groupversion_info.go"]

    def test_quoted_alias_is_cleaned(self):
        data = b'{"info": {"x-aws-api-alias": "\\"s3\\""}}'
        api = Generator().compile(data).api

        assert Generator().api_group(api) == "s3.services.k8s.aws"

    @pytest.mark.parametrize(
        "data, error",
        [
            (b"{not json", MalformedDocument),
            (
                b'{"definitions": {"A": {"properties": {"b": {"$ref": "#/definitions/B"}}}}}',
                UnresolvedReference,
            ),
        ],
    )
    def test_failure_writes_nothing(self, data, error):
        writer = MagicMock()
        generator = Generator()

        with pytest.raises(error):
            generator.generate(data, writer)

        writer.write.assert_not_called()
        assert generator.state == GeneratorState.FAILED

    def test_rendering_failure_writes_nothing(self, widget_api_bytes, tmp_path):
        writer = MagicMock()
        generator = Generator(renderer=TemplateRenderer(str(tmp_path)))

        with pytest.raises(TemplateNotFound):
            generator.generate(widget_api_bytes, writer)

        writer.write.assert_not_called()
        assert generator.state == GeneratorState.FAILED


class TestTemplateRenderer:
    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown artifact kind"):
            TemplateRenderer().render(
                "crd", DocTemplateVars(api_version="v1", api_group="g")
            )

    def test_custom_template_dir(self, tmp_path):
        (tmp_path / "doc.go.j2").write_text("package {{ api_version }} // {{ api_group }}")

        content = TemplateRenderer(str(tmp_path)).render(
            "doc", DocTemplateVars(api_version="v2", api_group="x.example.com")
        )

        assert content == b"package v2 // x.example.com"


class TestWriters:
    def test_stdout_writer_banners(self):
        stream = io.StringIO()

        StdoutWriter(stream).write(
            [Artifact("doc.go", b"package v1\n\n"), Artifact("types.go", b"package v1\n")]
        )

        banner = "=" * 29
        assert stream.getvalue() == (
            f"{banner} doc.go {banner}\npackage v1\n"
            f"{banner} types.go {banner}\npackage v1\n"
        )

    def test_directory_writer_creates_directory(self, tmp_path):
        output_dir = tmp_path / "apis" / "v1alpha1"
        writer = DirectoryWriter(str(output_dir))

        writer.write([Artifact("doc.go", b"package v1alpha1\n")])

        assert (output_dir / "doc.go").read_bytes() == b"package v1alpha1\n"
        assert writer.ensure_output_dir() is True

    def test_directory_writer_overwrites(self, tmp_path):
        (tmp_path / "doc.go").write_bytes(b"old")

        DirectoryWriter(str(tmp_path)).write([Artifact("doc.go", b"new")])

        assert (tmp_path / "doc.go").read_bytes() == b"new"

    def test_output_path_is_a_file(self, tmp_path):
        path = tmp_path / "file"
        path.write_text("x")

        with pytest.raises(NotADirectoryError):
            DirectoryWriter(str(path)).write([Artifact("doc.go", b"")])
