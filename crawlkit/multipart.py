"""multipart/form-data body builder.

The boundary is ``dash_prefix + token``. Each part is written as::

    --<boundary>\\r\\n
    Content-Disposition: form-data; name="<name>"[; filename="<file>"]\\r\\n
    [Content-Type: <sniffed type>\\r\\n]
    \\r\\n
    <content>\\r\\n

and the body ends with ``--<boundary>--\\r\\n``.
"""

import logging
import mimetypes
import os
import re
import secrets
from collections.abc import Callable

from .exceptions import InvalidBoundaryError
from .types import FormField

logger = logging.getLogger(__name__)

DEFAULT_DASH_PREFIX = "---------------------------"
BOUNDARY_TOKEN_LENGTH = 29
SNIFF_LENGTH = 512

# RFC 2046 bchars, space is not allowed as the last character
_BOUNDARY_RE = re.compile(r"[0-9A-Za-z'()+_,\-./:=? ]{0,69}[0-9A-Za-z'()+_,\-./:=?]")
# RFC 2045 tspecials
_TSPECIALS = frozenset('()<>@,;:\\"/[]?=')

BoundaryFunc = Callable[[], str]


def random_boundary() -> str:
    """Return a 29 digit token whose first digit is never zero."""
    digits = [str(secrets.randbelow(9) + 1)]
    digits.extend(str(secrets.randbelow(10)) for _ in range(BOUNDARY_TOKEN_LENGTH - 1))
    return "".join(digits)


def escape_quotes(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def detect_content_type(filename: str, head: bytes) -> str:
    """
    Detect the MIME type of a file part.

    Args:
        filename: file name, used when the content says nothing useful
        head: first bytes of the file (at most 512 are inspected)

    Returns:
        MIME type string
    """
    if head:
        import magic

        sniffed = magic.from_buffer(head[:SNIFF_LENGTH], mime=True)
        if sniffed and sniffed != "application/octet-stream":
            return sniffed

    mime_type, _ = mimetypes.guess_type(filename)
    if mime_type:
        return mime_type

    return "application/octet-stream"


class MultipartForm:
    def __init__(
        self,
        dash_prefix: str = DEFAULT_DASH_PREFIX,
        boundary_func: BoundaryFunc | None = None,
    ):
        token = (boundary_func or random_boundary)()
        if not isinstance(token, str) or not token:
            raise InvalidBoundaryError(f"boundary generator returned {token!r}")

        boundary = dash_prefix + token
        if not _BOUNDARY_RE.fullmatch(boundary):
            raise InvalidBoundaryError(f"invalid boundary: {boundary!r}")

        self._boundary = boundary
        self._delimiter = f"--{boundary}".encode("ascii")
        self._buffer = bytearray()
        self._fields: list[FormField] = []

    @property
    def boundary(self) -> str:
        return self._boundary

    @property
    def fields(self) -> list[FormField]:
        """(name, value or file path) for every appended part, in append order."""
        return list(self._fields)

    def content_type(self) -> str:
        boundary = self._boundary
        if any(c in _TSPECIALS or c == " " for c in boundary):
            boundary = f'"{boundary}"'
        return f"multipart/form-data; boundary={boundary}"

    def append_string(self, name: str, value: str) -> None:
        self._write_part(
            f'form-data; name="{escape_quotes(name)}"',
            None,
            value.encode("utf-8"),
        )
        self._fields.append((name, value))

    def append_file(self, name: str, path: str | os.PathLike[str]) -> None:
        path = os.fspath(path)
        with open(path, "rb") as f:
            content = f.read()

        filename = os.path.basename(path)
        content_type = detect_content_type(filename, content[:SNIFF_LENGTH])
        logger.debug(f"multipart file part {name}={path} ({content_type})")

        self._write_part(
            f'form-data; name="{escape_quotes(name)}"; filename="{escape_quotes(filename)}"',
            content_type,
            content,
        )
        self._fields.append((name, path))

    def _write_part(self, disposition: str, content_type: str | None, content: bytes) -> None:
        if self._delimiter[2:] in content:
            raise InvalidBoundaryError(
                f"boundary {self._boundary!r} appears in the content of a part"
            )

        self._buffer += self._delimiter + b"\r\n"
        self._buffer += f"Content-Disposition: {disposition}\r\n".encode("utf-8")
        if content_type:
            self._buffer += f"Content-Type: {content_type}\r\n".encode("utf-8")
        self._buffer += b"\r\n"
        self._buffer += content
        self._buffer += b"\r\n"

    def body(self) -> bytes:
        """Return the encoded body, terminator included."""
        return bytes(self._buffer) + self._delimiter + b"--\r\n"
