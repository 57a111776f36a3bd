"""Shared helper functions and constants."""

import json
import re

# Mapping from OpenAPI primitive types to Go types.
OPENAPI_TO_GO_TYPE_MAP = {
    "string": "string",
    "integer": "int64",
    "number": "float64",
    "boolean": "bool",
}

PRIMITIVE_TYPES = frozenset(OPENAPI_TO_GO_TYPE_MAP)

# Go keywords and predeclared identifiers. Generated names that collide with
# one of these (case-insensitively) get a trailing underscore.
GO_RESERVED_IDENTIFIERS = frozenset(
    {
        # Keywords
        "break",
        "case",
        "chan",
        "const",
        "continue",
        "default",
        "defer",
        "else",
        "fallthrough",
        "for",
        "func",
        "go",
        "goto",
        "if",
        "import",
        "interface",
        "map",
        "package",
        "range",
        "return",
        "select",
        "struct",
        "switch",
        "type",
        "var",
        # Predeclared identifiers
        "any",
        "bool",
        "byte",
        "complex64",
        "complex128",
        "error",
        "float32",
        "float64",
        "int",
        "int8",
        "int16",
        "int32",
        "int64",
        "rune",
        "string",
        "uint",
        "uint8",
        "uint16",
        "uint32",
        "uint64",
        "uintptr",
        "true",
        "false",
        "iota",
        "nil",
        "append",
        "cap",
        "close",
        "complex",
        "copy",
        "delete",
        "imag",
        "len",
        "make",
        "new",
        "panic",
        "print",
        "println",
        "real",
        "recover",
    }
)


def to_snake_case(name):
    """Converts CamelCase to snake_case."""
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


def capitalize_first(s: str) -> str:
    """Capitalizes the first letter of a string without lowercasing the rest."""
    if not s:
        return ""
    return s[0].upper() + s[1:]


def to_pascal_case(name: str) -> str:
    """
    Converts an arbitrary schema or property name to PascalCase.

    Existing capitalization inside words is preserved, so 'DBInstance' stays
    'DBInstance' and 'vpc_id' becomes 'VpcId'.
    """
    words = re.split(r"[^0-9A-Za-z]+", name)
    return "".join(capitalize_first(word) for word in words if word)


def go_identifier(name: str, check_reserved: bool = True) -> str:
    """
    Turns a name into an exported Go identifier: PascalCase, no leading digit,
    and (when `check_reserved` is set) never one of the Go reserved identifiers
    once lower-cased, since type names are also used as local variable names in
    the generated code.
    """
    identifier = to_pascal_case(name)
    if not identifier:
        identifier = "Field"
    if identifier[0].isdigit():
        identifier = f"X{identifier}"
    if check_reserved and identifier.lower() in GO_RESERVED_IDENTIFIERS:
        identifier = f"{identifier}_"
    return identifier


def unique_name(candidate: str, taken) -> str:
    """
    Returns `candidate`, or `candidate` with the smallest numeric suffix
    (starting at 2) that is not already in `taken`.
    """
    if candidate not in taken:
        return candidate
    index = 2
    while f"{candidate}{index}" in taken:
        index += 1
    return f"{candidate}{index}"


def go_string_literal(value: str) -> str:
    """Quotes a string as an interpreted Go string literal."""
    # JSON string escapes are a subset of Go's.
    return json.dumps(value, ensure_ascii=False)
