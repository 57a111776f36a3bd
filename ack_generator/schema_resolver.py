"""
Resolves raw OpenAPI schema dictionaries into the closed Schema model.

Named object and enum schemas are never inlined: wherever they are used, they
appear as a `RefSchema` carrying their name, and the type definition extractor
turns each name into exactly one type. Aliases (named primitives, arrays and
maps) are inlined at their point of use. Composition keywords (`allOf`,
`oneOf`, `anyOf`) are flattened into a single object, enum or primitive.

Resolution is lazy and memoized per name in a `ResolverContext`, so each
definition is resolved at most once per run however often it is referenced.
A reference back to a definition that is still being resolved is left as a
`RefSchema`, which is what keeps recursive schemas finite.
"""

import logging
from typing import Any, Dict, List, Optional, Set

from .api_parser import ref_to_name
from .exceptions import UnresolvedReference, UnsupportedSchemaShape
from .helpers import PRIMITIVE_TYPES
from .models import (
    ArraySchema,
    EnumSchema,
    MapSchema,
    ObjectSchema,
    PrimitiveSchema,
    RefSchema,
    Schema,
    SchemaField,
)

logger = logging.getLogger(__name__)

# Variants that are emitted as named types and therefore referenced by name.
NAMED_KINDS = ("object", "enum")


class ResolverContext:
    """
    Per-run resolution state: the memoization cache and the stack of names
    currently being resolved. Create one per compilation; never share it.
    """

    def __init__(self):
        self.cache: Dict[str, Schema] = {}
        self.in_progress: List[str] = []
        # In-progress definitions being expanded again as a composition member.
        self.composing: List[str] = []


def _schema_type(raw: Dict[str, Any]) -> Optional[str]:
    """Returns the declared type, inferring it from structural keywords if absent."""
    declared = raw.get("type")
    if isinstance(declared, list):
        # OpenAPI 3.1 allows `type: [string, "null"]`.
        declared = next((t for t in declared if t != "null"), None)
    if declared:
        return str(declared)
    if "properties" in raw or "additionalProperties" in raw:
        return "object"
    if "items" in raw:
        return "array"
    return None


class SchemaResolver:
    """Turns the named definitions of an API document into resolved Schema trees."""

    def __init__(
        self,
        definitions: Dict[str, Dict[str, Any]],
        context: Optional[ResolverContext] = None,
    ):
        """
        Args:
            definitions: Mapping of definition name to raw schema, in document order.
            context: The resolution state for this run. A fresh one is created
                     when omitted.
        """
        self.definitions = definitions
        self.context = context if context is not None else ResolverContext()

    def resolve_all(self) -> Dict[str, Schema]:
        """Resolves every definition, preserving document order."""
        return {name: self.resolve(name) for name in self.definitions}

    def resolve(self, name: str) -> Schema:
        """
        Returns the resolved schema of a named definition.

        A pure alias of a named object or enum resolves to a `RefSchema` of the
        aliased name.

        Raises:
            UnresolvedReference: If the name (or anything it references) is not defined.
            UnsupportedSchemaShape: If a schema cannot be mapped to a supported variant.
        """
        cached = self.context.cache.get(name)
        if cached is not None:
            return cached
        if name not in self.definitions:
            raise UnresolvedReference(name)

        logger.debug("Resolving schema '%s'", name)
        self.context.in_progress.append(name)
        try:
            schema = self._convert(self.definitions[name], name, named=True)
        finally:
            self.context.in_progress.pop()
        self.context.cache[name] = schema
        return schema

    def deref(self, schema: Schema) -> Schema:
        """Follows a RefSchema to the concrete schema it names."""
        if schema.kind == "reference":
            return self.resolve(schema.name)
        return schema

    def canonical_name(self, name: str) -> str:
        """
        Follows a chain of pure aliases (`Foo: {$ref: Bar}`) to the first
        definition that has a concrete shape.
        """
        seen: Set[str] = set()
        current = name
        while True:
            if current not in self.definitions:
                raise UnresolvedReference(current)
            if current in seen:
                raise UnresolvedReference(
                    name,
                    f"Schema reference '{name}' loops through aliases without "
                    "reaching a concrete schema.",
                )
            seen.add(current)
            target = self._alias_target(self.definitions[current])
            if target is None:
                return current
            current = target

    @staticmethod
    def _alias_target(raw: Dict[str, Any]) -> Optional[str]:
        if "$ref" in raw:
            return ref_to_name(raw["$ref"])
        all_of = raw.get("allOf")
        if isinstance(all_of, list) and len(all_of) == 1 and not raw.get("properties"):
            member = all_of[0]
            if isinstance(member, dict) and "$ref" in member:
                return ref_to_name(member["$ref"])
        return None

    @staticmethod
    def _declares_named_type(raw: Dict[str, Any]) -> bool:
        """Checks, without resolving, whether a raw schema is an object or string enum."""
        if "enum" in raw:
            return _schema_type(raw) in (None, "string")
        for keyword in ("allOf", "oneOf", "anyOf"):
            if isinstance(raw.get(keyword), list) and len(raw[keyword]) > 1:
                return True
        if _schema_type(raw) != "object":
            return False
        additional = raw.get("additionalProperties")
        return bool(raw.get("properties")) or not (
            isinstance(additional, dict) and additional
        )

    def _resolve_ref(self, ref: str, path: str) -> Schema:
        name = self.canonical_name(ref_to_name(ref))

        if name in self.context.in_progress:
            # Reference cycle: break it by name instead of inlining.
            if self._declares_named_type(self.definitions[name]):
                logger.debug("Breaking reference cycle at '%s' (%s)", name, path)
                return RefSchema(name)
            raise UnsupportedSchemaShape(
                path,
                f"Schema '{name}' recursively contains itself at '{path}' "
                "without going through an object schema.",
            )

        resolved = self.resolve(name)
        if resolved.kind in NAMED_KINDS:
            return RefSchema(name)
        return resolved

    def _convert(self, raw: Any, path: str, named: bool = False) -> Schema:
        if not isinstance(raw, dict):
            raise UnsupportedSchemaShape(path)

        if "$ref" in raw:
            return self._resolve_ref(raw["$ref"], path)
        if "allOf" in raw:
            return self._merge_all_of(raw, path, named)
        for keyword in ("oneOf", "anyOf"):
            if keyword in raw:
                return self._merge_one_of(raw, keyword, path)

        schema_type = _schema_type(raw)

        if "enum" in raw:
            if schema_type in (None, "string"):
                values: List[str] = []
                for value in raw["enum"] or []:
                    if value is not None and str(value) not in values:
                        values.append(str(value))
                return EnumSchema(tuple(values))
            if schema_type in PRIMITIVE_TYPES:
                return PrimitiveSchema(schema_type, raw.get("format"))
            raise UnsupportedSchemaShape(path)

        if schema_type == "object":
            return self._convert_object(raw, path, named)
        if schema_type == "array":
            items = raw.get("items")
            if not isinstance(items, dict):
                raise UnsupportedSchemaShape(
                    path, f"Array schema at '{path}' has no 'items' schema."
                )
            return ArraySchema(self._convert(items, f"{path}[]"))
        if schema_type in PRIMITIVE_TYPES:
            return PrimitiveSchema(schema_type, raw.get("format"))

        raise UnsupportedSchemaShape(
            path, f"Schema at '{path}' has unsupported type {schema_type!r}."
        )

    def _convert_object(self, raw: Dict[str, Any], path: str, named: bool) -> Schema:
        properties = raw.get("properties") or {}
        if not properties:
            additional = raw.get("additionalProperties")
            if isinstance(additional, dict) and additional:
                return MapSchema(
                    self._convert(additional, f"{path}{{}}"),
                )
            if named:
                return ObjectSchema((), description=raw.get("description"))
            return MapSchema(None)

        required = set(raw.get("required") or [])
        fields = []
        for prop_name, prop_schema in properties.items():
            prop_schema = prop_schema if isinstance(prop_schema, dict) else None
            fields.append(
                SchemaField(
                    name=str(prop_name),
                    schema=self._convert(prop_schema, f"{path}.{prop_name}"),
                    required=prop_name in required,
                    description=(prop_schema or {}).get("description"),
                    read_only=bool((prop_schema or {}).get("readOnly", False)),
                )
            )
        return ObjectSchema(tuple(fields), description=raw.get("description"))

    def _concrete_member(self, member: Schema, path: str) -> Schema:
        """
        Returns the concrete schema of a composition member.

        A member that is still being resolved further up the stack (one of its
        fields leads back to the composing schema) has no cached result yet, so
        its definition is expanded again in place. Only a member that composes
        itself, directly or through other members, is rejected.
        """
        if member.kind != "reference" or member.name not in self.context.in_progress:
            return self.deref(member)
        if member.name in self.context.composing:
            raise UnsupportedSchemaShape(
                path,
                f"Cannot compose schema '{member.name}' into itself at '{path}'.",
            )
        logger.debug("Expanding in-progress schema '%s' at '%s'", member.name, path)
        self.context.composing.append(member.name)
        try:
            return self._convert(self.definitions[member.name], member.name, named=True)
        finally:
            self.context.composing.pop()

    def _merge_all_of(self, raw: Dict[str, Any], path: str, named: bool) -> Schema:
        members = [m for m in raw["allOf"] if isinstance(m, dict)]
        siblings = {k: v for k, v in raw.items() if k != "allOf"}
        if len(members) == 1 and not siblings.get("properties"):
            return self._convert(members[0], path, named)

        # Fields keep the position of their first occurrence; later definitions
        # of the same property override earlier ones.
        merged: Dict[str, SchemaField] = {}
        for index, member in enumerate(members):
            member_path = f"{path}.allOf[{index}]"
            schema = self._concrete_member(
                self._convert(member, member_path, named=True), member_path
            )
            if schema.kind != "object":
                raise UnsupportedSchemaShape(
                    member_path,
                    f"allOf member at '{member_path}' is not an object schema.",
                )
            for schema_field in schema.fields:
                merged[schema_field.name] = schema_field

        if siblings.get("properties"):
            own = self._convert_object(siblings, path, named=True)
            for schema_field in own.fields:
                merged[schema_field.name] = schema_field

        required = set(raw.get("required") or [])
        fields = tuple(
            SchemaField(
                name=f.name,
                schema=f.schema,
                required=f.required or f.name in required,
                description=f.description,
                read_only=f.read_only,
            )
            for f in merged.values()
        )
        return ObjectSchema(fields, description=raw.get("description"))

    def _merge_one_of(self, raw: Dict[str, Any], keyword: str, path: str) -> Schema:
        members = []
        for index, member in enumerate(raw[keyword]):
            if isinstance(member, dict) and member.get("type") == "null":
                continue
            members.append(self._convert(member, f"{path}.{keyword}[{index}]"))
        if not members:
            raise UnsupportedSchemaShape(path, f"'{keyword}' at '{path}' is empty.")
        if len(members) == 1:
            return members[0]

        concrete = [self._concrete_member(m, path) for m in members]
        kinds = {schema.kind for schema in concrete}

        if kinds == {"object"}:
            # Any variant may be sent, so no merged field can be required.
            merged: Dict[str, SchemaField] = {}
            for schema in concrete:
                for f in schema.fields:
                    merged.setdefault(
                        f.name,
                        SchemaField(f.name, f.schema, False, f.description, f.read_only),
                    )
            return ObjectSchema(tuple(merged.values()), description=raw.get("description"))

        if kinds == {"enum"}:
            values: List[str] = []
            for schema in concrete:
                values.extend(v for v in schema.values if v not in values)
            return EnumSchema(tuple(values))

        if kinds == {"primitive"} and len({s.type for s in concrete}) == 1:
            return concrete[0]

        raise UnsupportedSchemaShape(
            path,
            f"'{keyword}' at '{path}' mixes incompatible schema variants: "
            f"{', '.join(sorted(kinds))}.",
        )
