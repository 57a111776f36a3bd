"""
Identifies which named schemas are manageable resources.

A named object schema is a resource's spec when at least one mutating
(create or update) operation uses it as its request or response body. The
status is taken from the read operation paired with one of those mutating
operations: its response fields that the resource spec does not already
declare.
Schemas that only ever appear as nested fields stay plain types.
"""

import logging
from typing import Dict, Iterable, List, Optional

from .exceptions import InvalidResourceShape
from .helpers import go_identifier, unique_name
from .models import (
    CRUD_OPERATIONS,
    APIDescription,
    ApiOperation,
    ObjectSchema,
    Resource,
)
from .schema_resolver import SchemaResolver

logger = logging.getLogger(__name__)

MUTATING_OPERATIONS = ("create", "update")


def _is_list_verb(operation_id: Optional[str]) -> bool:
    # 'ListWidgets' and 'list_widgets', but not 'Listener'.
    if not operation_id or operation_id[:4].lower() != "list":
        return False
    return len(operation_id) == 4 or not operation_id[4].islower()


def _read_preference(operation: ApiOperation) -> int:
    """Ranks read operations: addressed by a path parameter, then non-list, then list."""
    if operation.path.rstrip("/").endswith("}"):
        return 0
    if not _is_list_verb(operation.operation_id):
        return 1
    return 2


class ResourceExtractor:
    """Derives the ordered list of Resources from a parsed API description."""

    def __init__(
        self,
        api: APIDescription,
        resolver: SchemaResolver,
        ignore_resource_names: Iterable[str] = (),
    ):
        self.api = api
        self.resolver = resolver
        self.ignore_resource_names = set(ignore_resource_names)

    def _collect_candidates(self) -> Dict[str, List[ApiOperation]]:
        """Maps each resource schema name to the mutating operations that use it."""
        candidates: Dict[str, List[ApiOperation]] = {}
        for operation in self.api.operations:
            if operation.operation_type not in MUTATING_OPERATIONS:
                continue
            for schema_name in (operation.request_schema, operation.response_schema):
                if schema_name is None:
                    continue
                name = self.resolver.canonical_name(schema_name)
                if name in self.ignore_resource_names:
                    logger.debug("Ignoring schema '%s' as a resource", name)
                    continue
                operations = candidates.setdefault(name, [])
                if operation not in operations:
                    operations.append(operation)
        return candidates

    def extract(self) -> List[Resource]:
        """
        Returns the resources in the order their schemas are defined in the
        document, one per schema however many operations reference it.

        Raises:
            InvalidResourceShape: If a resource schema is not an object.
        """
        candidates = self._collect_candidates()
        resources: List[Resource] = []
        taken_kinds = set()

        # Iterating the definitions keeps the order independent of operation order.
        for name in self.api.definitions:
            if name not in candidates:
                continue
            spec = self.resolver.resolve(name)
            if spec.kind != "object":
                raise InvalidResourceShape(
                    name,
                    f"Schema '{name}' is used as the body of operation "
                    f"'{candidates[name][0].operation_id or candidates[name][0].path}' "
                    f"but is a {spec.kind} schema, not an object.",
                )

            kind = unique_name(go_identifier(name), taken_kinds)
            taken_kinds.add(kind)
            resource = self._build_resource(name, kind, spec, candidates[name])
            logger.debug(
                "Classified schema '%s' as resource '%s' (%s)",
                name,
                kind,
                ", ".join(resource.operations),
            )
            resources.append(resource)

        logger.info("Extracted %d resources", len(resources))
        return resources

    def _build_resource(
        self,
        name: str,
        kind: str,
        spec: ObjectSchema,
        mutating_operations: List[ApiOperation],
    ) -> Resource:
        nouns = {operation.noun for operation in mutating_operations}
        supported = {operation.operation_type for operation in mutating_operations}

        read_operation = self._find_read_operation(name, nouns)
        if read_operation is not None:
            supported.add("read")

        for operation in self.api.operations:
            if operation.operation_type != "delete":
                continue
            if operation.noun in nouns or name in (
                operation.request_schema,
                operation.response_schema,
            ):
                supported.add("delete")
                break

        status_schema_name = None
        status = ObjectSchema(())
        if read_operation is not None and read_operation.response_schema:
            status_schema_name = self.resolver.canonical_name(
                read_operation.response_schema
            )
            status = self._status_from(spec, status_schema_name)

        return Resource(
            kind=kind,
            schema_name=name,
            spec=spec,
            status=status,
            operations=tuple(op for op in CRUD_OPERATIONS if op in supported),
            status_schema_name=status_schema_name,
        )

    def _find_read_operation(
        self, name: str, nouns: set
    ) -> Optional[ApiOperation]:
        """
        The read operation paired with the resource: one sharing the noun of a
        mutating operation, or failing that, one returning the schema itself.
        Single-item reads are preferred over list reads; ties go to the first
        operation in document order.
        """
        paired: List[ApiOperation] = []
        fallback = None
        for operation in self.api.operations:
            if operation.operation_type != "read" or not operation.response_schema:
                continue
            if operation.noun in nouns:
                paired.append(operation)
            elif fallback is None and (
                self.resolver.canonical_name(operation.response_schema) == name
            ):
                fallback = operation
        if paired:
            return min(paired, key=_read_preference)
        return fallback

    def _status_from(self, spec: ObjectSchema, read_schema_name: str) -> ObjectSchema:
        read_schema = self.resolver.resolve(read_schema_name)
        if read_schema.kind != "object":
            logger.debug(
                "Read response '%s' is not an object, status left empty",
                read_schema_name,
            )
            return ObjectSchema(())
        spec_names = set(spec.field_names())
        return ObjectSchema(
            tuple(f for f in read_schema.fields if f.name not in spec_names),
            description=read_schema.description,
        )
