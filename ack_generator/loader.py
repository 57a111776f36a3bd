"""
Reads the raw API document and decodes it into a Python mapping.

Content type is taken from the file extension when a path is given. Input from
a stream carries no hint, so the first non-whitespace byte is sniffed: '{' or
'[' means JSON, anything else is normalized from YAML first and decoded as
JSON only if that fails.
"""

import enum
import json
import logging
import os
import sys
from typing import Any, BinaryIO, Dict, Optional, Sequence, Tuple

import yaml

from .api_parser import ApiSpecParser
from .exceptions import EmptyOrInvalidDocument, InvalidInvocation, MalformedDocument
from .models import APIDescription

logger = logging.getLogger(__name__)


class ContentType(enum.Enum):
    UNKNOWN = "unknown"
    JSON = "json"
    YAML = "yaml"


_EXTENSION_CONTENT_TYPES = {
    ".json": ContentType.JSON,
    ".yaml": ContentType.YAML,
    ".yml": ContentType.YAML,
}


def content_type_from_path(path: str) -> ContentType:
    """Infers the content type from a file extension."""
    _, ext = os.path.splitext(path)
    return _EXTENSION_CONTENT_TYPES.get(ext.lower(), ContentType.UNKNOWN)


def read_input(
    args: Sequence[str], stdin: Optional[BinaryIO] = None
) -> Tuple[bytes, ContentType]:
    """
    Reads the API document from the single positional argument, or from
    standard input when there is none.

    Args:
        args: The positional command-line arguments.
        stdin: Binary stream used when no path is given. Defaults to sys.stdin.

    Returns:
        The raw bytes and the content type hint.

    Raises:
        InvalidInvocation: If more than one positional argument is given.
        EmptyOrInvalidDocument: If the input cannot be read.
    """
    if len(args) > 1:
        raise InvalidInvocation(
            "Expected an OpenAPI document either via STDIN or a single path "
            f"argument, got {len(args)} arguments."
        )

    if not args:
        stream = stdin if stdin is not None else sys.stdin.buffer
        logger.debug("Reading API document from standard input")
        try:
            return stream.read(), ContentType.UNKNOWN
        except OSError as e:
            raise EmptyOrInvalidDocument(
                f"Expected an OpenAPI document via STDIN: {e}"
            ) from e

    path = os.path.normpath(args[0])
    logger.debug("Reading API document from '%s'", path)
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise EmptyOrInvalidDocument(f"Could not read '{path}': {e}") from e
    return data, content_type_from_path(path)


def _looks_like_json(data: bytes) -> bool:
    stripped = data.lstrip()
    return stripped[:1] in (b"{", b"[")


def decode_document(
    data: bytes, content_type: ContentType = ContentType.UNKNOWN
) -> Dict[str, Any]:
    """
    Decodes raw bytes into the document mapping.

    Raises:
        EmptyOrInvalidDocument: If fewer than 2 bytes were supplied.
        MalformedDocument: If the bytes are neither valid YAML nor JSON, or the
            top-level value is not a mapping.
    """
    if len(data) < 2:
        raise EmptyOrInvalidDocument(
            f"Expected an OpenAPI document but got {data!r}."
        )

    document = None
    errors = []
    try_yaml = content_type == ContentType.YAML or (
        content_type == ContentType.UNKNOWN and not _looks_like_json(data)
    )

    if try_yaml:
        try:
            document = yaml.safe_load(data)
        except yaml.YAMLError as e:
            logger.debug("YAML normalization failed, falling back to JSON: %s", e)
            errors.append(str(e))

    if document is None:
        try:
            document = json.loads(data)
        except ValueError as e:
            errors.append(str(e))
            raise MalformedDocument(
                f"Could not parse the API document: {errors[-1]}",
                cause="; ".join(errors),
            ) from e

    if not isinstance(document, dict):
        raise MalformedDocument(
            "Expected the API document to be a mapping, "
            f"got {type(document).__name__}.",
            cause=f"top-level value is {type(document).__name__}",
        )
    return document


def load_api(
    data: bytes,
    content_type: ContentType = ContentType.UNKNOWN,
    alias_extension: str = "x-aws-api-alias",
) -> APIDescription:
    """Decodes raw bytes and parses them into an APIDescription."""
    document = decode_document(data, content_type)
    return ApiSpecParser(document, alias_extension=alias_extension).parse()
