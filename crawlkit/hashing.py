import hashlib
import json
from typing import TYPE_CHECKING

from .exceptions import SerializationError
from .types import BodyKind

if TYPE_CHECKING:
    from .models import Request


def _multipart_segments(body: bytes, boundary: str) -> list[str]:
    # parts split on the delimiter, so the random boundary and part order drop out
    delimiter = b"--" + boundary.encode("ascii")
    return sorted(segment.hex() for segment in body.split(delimiter))


def canonicalize(request: "Request") -> bytes:
    """Serialize method, URL, body kind, fields and body into a stable byte form.

    Field pairs are sorted, duplicates kept, so insertion order never changes
    the result. Form bodies are built from the sorted pairs and are included
    as is. Multipart bodies are reduced to their sorted part segments with the
    boundary removed.
    """
    pairs = []
    for name, value in request.form_fields:
        if not isinstance(name, str) or not isinstance(value, str):
            raise SerializationError(
                f"form field {name!r} cannot be canonicalized: {type(value).__name__} value"
            )
        pairs.append([name, value])
    pairs.sort()

    body = bytes(request.body)
    if request.body_kind is BodyKind.MULTIPART and request.boundary:
        payload: str | list[str] = _multipart_segments(body, request.boundary)
    else:
        payload = body.hex()

    try:
        return json.dumps(
            [request.method.upper(), request.url, BodyKind(request.body_kind).value, pairs, payload],
            ensure_ascii=True,
            separators=(",", ":"),
        ).encode("ascii")
    except (TypeError, ValueError, AttributeError) as e:
        raise SerializationError(str(e)) from e


def fingerprint(request: "Request") -> str:
    """SHA-256 hex digest of the canonical request, used as the cache key."""
    return hashlib.sha256(canonicalize(request)).hexdigest()
