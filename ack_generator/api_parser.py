import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from .exceptions import MalformedDocument, UnresolvedReference
from .models import APIDescription, ApiOperation

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "put", "post", "patch", "delete")

# JSON pointer prefixes under which named schema definitions live.
DEFINITION_PREFIXES = ("#/definitions/", "#/components/schemas/")

# Success responses checked, in order, for a response body schema.
SUCCESS_STATUS_CODES = ("200", "201", "202", "default")

# operationId verb prefixes, checked before falling back to the HTTP method.
_VERB_OPERATION_TYPES = (
    (("Create", "Put", "Add", "Register"), "create"),
    (("Update", "Modify", "Patch", "Set"), "update"),
    (("Describe", "Get", "List", "Read"), "read"),
    (("Delete", "Remove", "Deregister"), "delete"),
)

_METHOD_OPERATION_TYPES = {
    "POST": "create",
    "PUT": "update",
    "PATCH": "update",
    "GET": "read",
    "DELETE": "delete",
}


def ref_to_name(ref: str) -> str:
    """
    Extracts the definition name from a JSON schema $ref.

    Args:
        ref: The JSON schema reference (e.g., '#/components/schemas/MyModel').

    Returns:
        The unescaped definition name (e.g., 'MyModel').

    Raises:
        UnresolvedReference: If the reference does not point at a named definition.
    """
    for prefix in DEFINITION_PREFIXES:
        if ref.startswith(prefix):
            name = ref[len(prefix) :]
            if name and "/" not in name:
                return name.replace("~1", "/").replace("~0", "~")
    raise UnresolvedReference(
        ref, f"Reference '{ref}' does not point at a named schema definition."
    )


def _split_operation_id(operation_id: str) -> Tuple[Optional[str], str]:
    """Splits an operationId into its operation type and the remaining noun."""
    # Accept both 'CreateWidget' and 'create_widget' / 'createWidget' styles.
    normalized = operation_id[:1].upper() + operation_id[1:]
    for prefixes, operation_type in _VERB_OPERATION_TYPES:
        for prefix in prefixes:
            if not normalized.startswith(prefix):
                continue
            rest = normalized[len(prefix) :]
            # The verb must end at a word boundary: 'Settings' is not 'Set' + 'tings'.
            if rest and not (rest[0].isupper() or rest[0] in "_-"):
                continue
            return operation_type, rest
    return None, operation_id


def _normalize_noun(noun: str) -> str:
    noun = re.sub(r"[^0-9a-z]", "", noun.lower())
    if noun.endswith("s") and len(noun) > 1:
        noun = noun[:-1]
    return noun


def _path_noun(path: str) -> str:
    """The collection part of a path, e.g. '/widgets/{id}/' -> '/widgets'."""
    segments = [s for s in path.strip("/").split("/") if s]
    while segments and segments[-1].startswith("{"):
        segments.pop()
    return "/" + "/".join(segments)


class ApiSpecParser:
    """
    Parses an OpenAPI (3.x) or Swagger (2.0) document into an APIDescription.
    """

    def __init__(
        self, api_spec_data: Dict[str, Any], alias_extension: str = "x-aws-api-alias"
    ):
        """
        Initializes the parser with the decoded API document.

        Args:
            api_spec_data: The decoded OpenAPI document.
            alias_extension: The info extension that carries the API group alias.
        """
        self.api_spec = api_spec_data
        self.alias_extension = alias_extension

    def parse(self) -> APIDescription:
        info = self.api_spec.get("info") or {}
        if not isinstance(info, dict):
            raise MalformedDocument("The 'info' section must be a mapping.")

        extensions = {k: v for k, v in info.items() if str(k).startswith("x-")}
        api_alias = extensions.get(self.alias_extension)

        definitions = self.get_definitions()
        operations = tuple(self.get_operations())
        logger.info(
            "Parsed API '%s': %d schema definitions, %d operations",
            info.get("title", ""),
            len(definitions),
            len(operations),
        )
        return APIDescription(
            title=str(info.get("title", "")),
            version=str(info.get("version", "")),
            definitions=definitions,
            operations=operations,
            extensions=extensions,
            api_alias=str(api_alias) if api_alias is not None else None,
        )

    def get_definitions(self) -> Dict[str, Dict[str, Any]]:
        """
        Collects the named schema definitions in document order, from both the
        Swagger 2 `definitions` and the OpenAPI 3 `components.schemas` sections.
        """
        definitions: Dict[str, Dict[str, Any]] = {}
        sections = [
            self.api_spec.get("definitions") or {},
            (self.api_spec.get("components") or {}).get("schemas") or {},
        ]
        for section in sections:
            if not isinstance(section, dict):
                raise MalformedDocument("Schema definitions must be a mapping.")
            for name, schema in section.items():
                if not isinstance(schema, dict):
                    raise MalformedDocument(
                        f"Schema definition '{name}' must be a mapping."
                    )
                definitions[str(name)] = schema
        return definitions

    def get_operations(self) -> List[ApiOperation]:
        operations = []
        for path, methods in (self.api_spec.get("paths") or {}).items():
            if not isinstance(methods, dict):
                continue
            for method in methods:
                if method.lower() not in HTTP_METHODS:
                    continue
                operation = methods[method]
                if isinstance(operation, dict):
                    operations.append(
                        self._build_operation(path, method.upper(), operation)
                    )
        return operations

    def _build_operation(
        self, path: str, method: str, operation: Dict[str, Any]
    ) -> ApiOperation:
        operation_id = operation.get("operationId")
        operation_type, noun = None, ""
        if operation_id:
            operation_type, noun = _split_operation_id(str(operation_id))
            noun = _normalize_noun(noun) if operation_type else ""
        if operation_type is None:
            operation_type = _METHOD_OPERATION_TYPES.get(method)
        if not noun:
            noun = _path_noun(path)

        return ApiOperation(
            path=path,
            method=method,
            operation_id=operation_id,
            operation_type=operation_type,
            noun=noun,
            request_schema=self._schema_name(self._request_body_schema(operation)),
            response_schema=self._schema_name(self._response_body_schema(operation)),
        )

    @staticmethod
    def _pick_media_schema(content: Any) -> Optional[Dict[str, Any]]:
        """Returns the schema of the JSON media type, or of the first one."""
        if not isinstance(content, dict) or not content:
            return None
        media = content.get("application/json")
        if media is None:
            media = next(iter(content.values()))
        if isinstance(media, dict):
            return media.get("schema")
        return None

    def _request_body_schema(
        self, operation: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        request_body = operation.get("requestBody")
        if isinstance(request_body, dict):
            return self._pick_media_schema(request_body.get("content"))

        # Swagger 2 carries the body as an `in: body` parameter.
        for param in operation.get("parameters") or []:
            if isinstance(param, dict) and param.get("in") == "body":
                return param.get("schema")
        return None

    def _response_body_schema(
        self, operation: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        responses = operation.get("responses") or {}
        for status_code in SUCCESS_STATUS_CODES:
            # YAML may decode unquoted status codes as integers.
            response_spec = responses.get(status_code)
            if response_spec is None and status_code.isdigit():
                response_spec = responses.get(int(status_code))
            if not isinstance(response_spec, dict):
                continue
            schema = response_spec.get("schema") or self._pick_media_schema(
                response_spec.get("content")
            )
            if schema:
                return schema
        return None

    @staticmethod
    def _schema_name(schema: Optional[Dict[str, Any]]) -> Optional[str]:
        """
        Only a direct $ref (or a single-member allOf wrapping one) names a
        schema; inline body schemas have no name and never become resources.
        """
        if not isinstance(schema, dict):
            return None
        if "$ref" in schema:
            return ref_to_name(schema["$ref"])
        all_of = schema.get("allOf")
        if isinstance(all_of, list) and len(all_of) == 1:
            return ApiSpecParser._schema_name(all_of[0])
        return None
