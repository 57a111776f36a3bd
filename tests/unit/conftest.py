import json

import pytest


def body(ref: str) -> dict:
    """An OpenAPI 3 request body / response content pointing at a schema."""
    return {"content": {"application/json": {"schema": {"$ref": ref}}}}


@pytest.fixture
def widget_api_spec():
    """
    A small OpenAPI 3 document with one manageable resource (Widget), a read
    response carrying its observed state, and a few supporting schemas.
    """
    return {
        "openapi": "3.0.3",
        "info": {
            "title": "Widget API",
            "version": "2020-01-01",
            "x-aws-api-alias": "widgets",
            "x-vendor-note": "test",
        },
        "paths": {
            "/widgets": {
                "post": {
                    "operationId": "CreateWidget",
                    "requestBody": body("#/components/schemas/Widget"),
                    "responses": {"200": body("#/components/schemas/Widget")},
                },
            },
            "/widgets/{id}": {
                "get": {
                    "operationId": "DescribeWidget",
                    "responses": {
                        "200": body("#/components/schemas/WidgetDescription")
                    },
                },
                "put": {
                    "operationId": "UpdateWidget",
                    "requestBody": body("#/components/schemas/Widget"),
                    "responses": {"200": {"description": "Updated"}},
                },
                "delete": {
                    "operationId": "DeleteWidget",
                    "responses": {"204": {"description": "Deleted"}},
                },
            },
        },
        "components": {
            "schemas": {
                "Widget": {
                    "type": "object",
                    "description": "A widget.",
                    "required": ["name"],
                    "properties": {
                        "name": {"type": "string", "description": "The widget name."},
                        "size": {"type": "integer"},
                        "color": {"$ref": "#/components/schemas/Color"},
                        "tags": {
                            "type": "array",
                            "items": {"$ref": "#/components/schemas/Tag"},
                        },
                        "config": {
                            "type": "object",
                            "properties": {"enabled": {"type": "boolean"}},
                        },
                    },
                },
                "WidgetDescription": {
                    "type": "object",
                    "properties": {
                        "name": {"type": "string"},
                        "state": {"type": "string", "enum": ["ACTIVE", "DELETING"]},
                        "arn": {"type": "string"},
                    },
                },
                "Color": {"type": "string", "enum": ["red", "green"]},
                "Tag": {
                    "type": "object",
                    "properties": {
                        "key": {"type": "string"},
                        "value": {"type": "string"},
                    },
                },
            }
        },
    }


@pytest.fixture
def widget_api_bytes(widget_api_spec):
    return json.dumps(widget_api_spec).encode("utf-8")


@pytest.fixture
def node_definitions():
    """A self-referential tree schema."""
    return {
        "Node": {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "children": {
                    "type": "array",
                    "items": {"$ref": "#/definitions/Node"},
                },
            },
        }
    }
