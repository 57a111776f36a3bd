"""
This module defines the core data structures used throughout the generator.
Using dataclasses provides type hinting, immutability (where desired), and a clear
structure for the data passed between the loader, resolver, extractors, and the
template rendering stage.

Schemas are modeled as a closed set of variants. Every consumer dispatches on
the ``kind`` attribute, so adding a variant means updating each of them.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

# Operation types a resource can support, in their canonical order.
CRUD_OPERATIONS = ("create", "read", "update", "delete")


@dataclass(frozen=True)
class PrimitiveSchema:
    type: str  # One of: string, integer, number, boolean
    format: Optional[str] = None
    kind: str = field(default="primitive", init=False)


@dataclass(frozen=True)
class EnumSchema:
    values: Tuple[str, ...]
    kind: str = field(default="enum", init=False)


@dataclass(frozen=True)
class RefSchema:
    """A by-name pointer to another named object or enum schema."""

    name: str
    kind: str = field(default="reference", init=False)


@dataclass(frozen=True)
class ArraySchema:
    items: "Schema"
    kind: str = field(default="array", init=False)


@dataclass(frozen=True)
class MapSchema:
    # None stands for free-form values (`additionalProperties: true`).
    values: Optional["Schema"] = None
    kind: str = field(default="map", init=False)


@dataclass(frozen=True)
class SchemaField:
    name: str
    schema: "Schema"
    required: bool = False
    description: Optional[str] = None
    read_only: bool = False


@dataclass(frozen=True)
class ObjectSchema:
    fields: Tuple[SchemaField, ...] = ()
    description: Optional[str] = None
    kind: str = field(default="object", init=False)

    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]


Schema = Union[
    ObjectSchema, ArraySchema, MapSchema, EnumSchema, PrimitiveSchema, RefSchema
]


@dataclass(frozen=True)
class ApiOperation:
    """
    Represents all the information about a single API operation that the
    resource extractor needs, parsed from the OpenAPI specification.
    """

    path: str  # The API path, e.g., /widgets/{id}
    method: str  # The HTTP method, e.g., GET, POST
    operation_id: Optional[str]  # The OpenAPI operationId
    operation_type: Optional[str]  # One of CRUD_OPERATIONS, or None
    noun: str  # Key used to pair mutating operations with read/delete ones
    request_schema: Optional[str] = None  # Name of the request body schema
    response_schema: Optional[str] = None  # Name of the success response schema


@dataclass(frozen=True)
class APIDescription:
    """The normalized root of a loaded API document. Read-only after load."""

    title: str
    version: str
    definitions: Dict[str, Dict[str, Any]]  # name -> raw schema, document order
    operations: Tuple[ApiOperation, ...] = ()
    extensions: Dict[str, Any] = field(default_factory=dict)  # x-* keys of info
    api_alias: Optional[str] = None


@dataclass(frozen=True)
class Resource:
    """A named, manageable entity with a desired (spec) and observed (status) state."""

    kind: str
    schema_name: str
    spec: ObjectSchema
    status: ObjectSchema
    operations: Tuple[str, ...]
    status_schema_name: Optional[str] = None

    @property
    def spec_type_name(self) -> str:
        return f"{self.kind}Spec"

    @property
    def status_type_name(self) -> str:
        return f"{self.kind}Status"


@dataclass(frozen=True)
class TypeDefField:
    name: str  # Go identifier
    json_name: str  # Name of the property in the API document
    schema: Schema  # Target schema; references use TypeDef names
    go_type: str
    required: bool = False
    # True when the field closes a reference cycle and must stay a pointer.
    recursive: bool = False
    description: Optional[str] = None


@dataclass(frozen=True)
class TypeDef:
    """A flat, named, emittable struct or enumeration."""

    name: str
    fields: Tuple[TypeDefField, ...] = ()
    enum_values: Optional[Tuple[str, ...]] = None
    schema_name: Optional[str] = None  # None for synthesized (lifted) types
    owner: Optional[str] = None  # Resource kind for <Kind>Spec/<Kind>Status
    description: Optional[str] = None
    # Go constant name of each enum value, in the order of `enum_values`.
    enum_constants: Tuple[str, ...] = ()

    @property
    def enum_members(self) -> List[Tuple[str, str]]:
        return list(zip(self.enum_constants, self.enum_values or ()))

    @property
    def is_enum(self) -> bool:
        return self.enum_values is not None


@dataclass(frozen=True)
class Artifact:
    """A single rendered output file."""

    name: str
    content: bytes


# --- Template variables -------------------------------------------------------
# Data objects passed to the templates. They contain simple, direct keys for the
# template to consume, minimizing logic in the templates themselves.


@dataclass
class TemplateVars:
    api_version: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DocTemplateVars(TemplateVars):
    api_group: str


@dataclass
class GroupVersionInfoTemplateVars(TemplateVars):
    api_group: str


@dataclass
class TypesTemplateVars(TemplateVars):
    type_defs: List[TypeDef]

    def to_dict(self) -> Dict[str, Any]:
        # Keep the dataclass instances so templates can use their properties.
        return {"api_version": self.api_version, "type_defs": self.type_defs}


@dataclass
class ResourceTemplateVars(TemplateVars):
    resource: Resource
    spec_type: TypeDef
    status_type: TypeDef

    def to_dict(self) -> Dict[str, Any]:
        return {
            "api_version": self.api_version,
            "resource": self.resource,
            "spec_type": self.spec_type,
            "status_type": self.status_type,
        }
