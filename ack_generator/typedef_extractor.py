"""
Flattens the resolved schema graph into an ordered list of named type
definitions.

Every named object or enum definition becomes exactly one TypeDef, each
resource contributes a `<Kind>Spec` and a `<Kind>Status`, and anonymous inline
objects and enums are lifted to a name derived from their enclosing type and
field. Types refer to each other by name only, and the list is ordered so that
a type's dependencies always come before it. Edges that close a reference cycle
are excluded from the ordering and their fields are flagged as recursive.
"""

import logging
from dataclasses import dataclass, field
from graphlib import CycleError, TopologicalSorter
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .exceptions import UnsupportedSchemaShape
from .helpers import OPENAPI_TO_GO_TYPE_MAP, go_identifier, unique_name
from .models import (
    APIDescription,
    ArraySchema,
    MapSchema,
    ObjectSchema,
    RefSchema,
    Resource,
    Schema,
    SchemaField,
    TypeDef,
    TypeDefField,
)
from .schema_resolver import NAMED_KINDS, SchemaResolver

logger = logging.getLogger(__name__)


@dataclass
class _PendingField:
    source: SchemaField
    name: str
    schema: Schema
    go_type: str
    dependencies: List[str]


@dataclass
class _PendingType:
    name: str
    schema: Schema
    schema_name: Optional[str] = None
    owner: Optional[str] = None
    description: Optional[str] = None
    fields: List[_PendingField] = field(default_factory=list)

    def dependencies(self) -> List[str]:
        seen: List[str] = []
        for pending_field in self.fields:
            for dependency in pending_field.dependencies:
                if dependency not in seen:
                    seen.append(dependency)
        return seen


class TypeDefExtractor:
    """Produces the deduplicated, dependency-ordered TypeDef list for one run."""

    def __init__(
        self,
        api: APIDescription,
        resolver: SchemaResolver,
        resources: Sequence[Resource],
    ):
        self.api = api
        self.resolver = resolver
        self.resources = list(resources)
        self._resource_types = {r.schema_name: r.spec_type_name for r in resources}
        self._named_types: Dict[str, str] = {}
        self._pending: Dict[str, _PendingType] = {}
        self._queue: List[_PendingType] = []
        # Every Go type name declared in the package, emitted or reserved.
        self._taken: Set[str] = set()

    def extract(self) -> List[TypeDef]:
        """
        Raises:
            UnsupportedSchemaShape: If a field's schema cannot be mapped to a type.
        """
        self._register_roots()

        # Lifting anonymous types appends to the queue while we iterate.
        for pending in self._queue:
            if pending.schema.kind == "object":
                self._build_fields(pending)

        back_edges = self._find_back_edges()
        order = self._dependency_order(back_edges)
        type_defs = [self._finalize(self._pending[name], back_edges) for name in order]
        logger.info("Extracted %d type definitions", len(type_defs))
        return type_defs

    # --- Naming -----------------------------------------------------------------

    def _register(self, pending: _PendingType):
        self._pending[pending.name] = pending
        self._queue.append(pending)
        self._taken.add(pending.name)

    def _register_roots(self):
        for resource in self.resources:
            # The resource file also declares `<Kind>` and `<Kind>List`.
            self._taken.update((resource.kind, f"{resource.kind}List"))
        for resource in self.resources:
            self._register(
                _PendingType(
                    name=resource.spec_type_name,
                    schema=resource.spec,
                    schema_name=resource.schema_name,
                    owner=resource.kind,
                    description=resource.spec.description,
                )
            )
            self._register(
                _PendingType(
                    name=resource.status_type_name,
                    schema=resource.status,
                    schema_name=resource.status_schema_name,
                    owner=resource.kind,
                    description=resource.status.description,
                )
            )

        # Claim every named definition before any anonymous type is lifted, so
        # named types keep their natural names.
        roots = []
        for name in self.api.definitions:
            if name in self._resource_types:
                continue
            schema = self.resolver.resolve(name)
            if schema.kind not in NAMED_KINDS:
                continue
            type_name = unique_name(go_identifier(name), self._taken)
            self._taken.add(type_name)
            self._named_types[name] = type_name
            roots.append(
                _PendingType(
                    name=type_name,
                    schema=schema,
                    schema_name=name,
                    description=getattr(schema, "description", None),
                )
            )
        for pending in roots:
            self._register(pending)

    def _lift(self, schema: Schema, parent: str, field_name: str) -> str:
        base = f"{parent}{go_identifier(field_name, check_reserved=False)}"
        name = unique_name(base, self._taken)
        logger.debug("Lifting anonymous %s schema to type '%s'", schema.kind, name)
        self._register(
            _PendingType(
                name=name, schema=schema, description=getattr(schema, "description", None)
            )
        )
        return name

    # --- Field mapping ------------------------------------------------------------

    def _build_fields(self, pending: _PendingType):
        taken: Set[str] = set()
        for source in pending.schema.fields:
            go_name = unique_name(go_identifier(source.name, check_reserved=False), taken)
            taken.add(go_name)
            dependencies: List[str] = []
            schema, go_type = self._map_schema(
                source.schema, pending.name, source.name, dependencies
            )
            pending.fields.append(
                _PendingField(
                    source=source,
                    name=go_name,
                    schema=schema,
                    go_type=go_type,
                    dependencies=dependencies,
                )
            )

    def _map_schema(
        self, schema: Schema, parent: str, field_name: str, dependencies: List[str]
    ) -> Tuple[Schema, str]:
        """
        Rewrites a field's schema so references use TypeDef names, lifting
        anonymous objects and enums on the way, and returns it with its Go type.
        """
        kind = schema.kind
        if kind == "primitive":
            return schema, f"*{OPENAPI_TO_GO_TYPE_MAP[schema.type]}"
        if kind in NAMED_KINDS:
            type_name = self._lift(schema, parent, field_name)
            dependencies.append(type_name)
            return RefSchema(type_name), f"*{type_name}"
        if kind == "reference":
            type_name = self._type_name_for(schema.name, f"{parent}.{field_name}")
            dependencies.append(type_name)
            return RefSchema(type_name), f"*{type_name}"
        if kind == "array":
            items, items_type = self._map_schema(
                schema.items, parent, field_name, dependencies
            )
            return ArraySchema(items), f"[]{items_type}"
        if kind == "map":
            if schema.values is None:
                return schema, "map[string]interface{}"
            values, values_type = self._map_schema(
                schema.values, parent, field_name, dependencies
            )
            return MapSchema(values), f"map[string]{values_type}"
        raise UnsupportedSchemaShape(f"{parent}.{field_name}")

    def _type_name_for(self, schema_name: str, path: str) -> str:
        # A schema that is a resource's spec is referenced through its Spec type.
        if schema_name in self._resource_types:
            return self._resource_types[schema_name]
        if schema_name in self._named_types:
            return self._named_types[schema_name]
        raise UnsupportedSchemaShape(
            path,
            f"Field '{path}' references schema '{schema_name}', "
            "which is neither an object nor an enum.",
        )

    # --- Ordering -------------------------------------------------------------------

    def _find_back_edges(self) -> Set[Tuple[str, str]]:
        """
        Depth-first search from every type in first-seen order; an edge to a
        type that is still on the stack closes a cycle.
        """
        back_edges: Set[Tuple[str, str]] = set()
        visited: Set[str] = set()
        on_stack: Set[str] = set()

        for root in self._pending:
            if root in visited:
                continue
            visited.add(root)
            on_stack.add(root)
            stack = [(root, iter(self._pending[root].dependencies()))]
            while stack:
                node, children = stack[-1]
                child = next(children, None)
                if child is None:
                    stack.pop()
                    on_stack.discard(node)
                    continue
                if child in on_stack:
                    back_edges.add((node, child))
                elif child not in visited:
                    visited.add(child)
                    on_stack.add(child)
                    stack.append((child, iter(self._pending[child].dependencies())))
        return back_edges

    def _dependency_order(self, back_edges: Set[Tuple[str, str]]) -> List[str]:
        position = {name: index for index, name in enumerate(self._pending)}
        graph = {
            name: [
                dependency
                for dependency in pending.dependencies()
                if (name, dependency) not in back_edges
            ]
            for name, pending in self._pending.items()
        }
        sorter = TopologicalSorter(graph)
        try:
            sorter.prepare()
        except CycleError as e:
            raise UnsupportedSchemaShape(
                str(e.args[1][0]),
                f"A circular type dependency could not be broken: {e.args[1]}",
            )

        order: List[str] = []
        while sorter.is_active():
            ready = sorted(sorter.get_ready(), key=position.__getitem__)
            order.extend(ready)
            sorter.done(*ready)
        return order

    def _finalize(
        self, pending: _PendingType, back_edges: Set[Tuple[str, str]]
    ) -> TypeDef:
        if pending.schema.kind == "enum":
            # Distinct values can map to the same identifier ('foo-bar', 'foo_bar').
            constants: List[str] = []
            for value in pending.schema.values:
                candidate = f"{pending.name}_{go_identifier(value, check_reserved=False)}"
                constants.append(unique_name(candidate, constants))
            return TypeDef(
                name=pending.name,
                enum_values=pending.schema.values,
                enum_constants=tuple(constants),
                schema_name=pending.schema_name,
                owner=pending.owner,
                description=pending.description,
            )

        fields = tuple(
            TypeDefField(
                name=f.name,
                json_name=f.source.name,
                schema=f.schema,
                go_type=f.go_type,
                required=f.source.required,
                recursive=any(
                    (pending.name, dependency) in back_edges
                    for dependency in f.dependencies
                ),
                description=f.source.description,
            )
            for f in pending.fields
        )
        return TypeDef(
            name=pending.name,
            fields=fields,
            schema_name=pending.schema_name,
            owner=pending.owner,
            description=pending.description,
        )
