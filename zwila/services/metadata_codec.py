"""Folder metadata codec: TOML-fronted Markdown records and the legacy JSON ones.

A structured record looks like::

    +++
    slug = 'zwila-test'
    description = 'Holiday photos'
    expiry = 2026-11-18T09:30:00.000Z
    downloads = 0
    +++

    ## Your downloads are available until 18 November

The preamble between the ``+++`` markers holds one TOML ``key = value`` pair
per line. The message, when there is one, follows after a blank line and is
kept verbatim. Older folders carry a ``foldermeta.json`` object instead; both
decode to the same :class:`FolderMeta`.
"""

import json
import tomllib
from datetime import date, datetime
from enum import Enum

from pydantic import ValidationError

from zwila.errors import DecodeError
from zwila.models.folder import FolderMeta, normalize_instant

MARKER = "+++"

REQUIRED_FIELDS = ("slug", "description", "expiry", "downloads")


class MetadataFormat(str, Enum):
    STRUCTURED = "structured"
    LEGACY = "legacy"

    @property
    def content_type(self) -> str:
        return CONTENT_TYPES[self]


CONTENT_TYPES = {
    MetadataFormat.STRUCTURED: "text/markdown; charset=UTF-8",
    MetadataFormat.LEGACY: "application/json",
}


# ── Encoding ─────────────────────────────────────────────────────────────────


def format_instant(value: datetime) -> str:
    """Format an instant as UTC with milliseconds, e.g. ``2026-11-18T09:30:00.000Z``."""
    value = normalize_instant(value)
    return (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
        f".{value.microsecond // 1000:03d}Z"
    )


def _toml_string(value: str) -> str:
    """Quote a string for the preamble.

    Literal strings are used where TOML allows them, which keeps the record
    readable; anything with a quote or a control character gets a basic
    string with escapes.
    """
    if "'" not in value and not any(c < " " and c != "\t" or c == "\x7f" for c in value):
        return f"'{value}'"
    return json.dumps(value, ensure_ascii=False).replace("\x7f", "\\u007f")


def render(meta: FolderMeta) -> str:
    """Render a folder's metadata as a structured (Markdown) record."""
    doc = (
        f"{MARKER}\n"
        f"slug = {_toml_string(meta.slug)}\n"
        f"description = {_toml_string(meta.description)}\n"
        f"expiry = {format_instant(meta.expiry)}\n"
        f"downloads = {meta.downloads}\n"
        f"{MARKER}\n"
    )
    if meta.message:
        doc += f"\n{meta.message}\n"
    return doc


def render_legacy(meta: FolderMeta) -> str:
    return json.dumps({
        "foldername": meta.slug,
        "expiry": format_instant(meta.expiry),
        "note": meta.description,
        "downloads": meta.downloads,
    })


def encode(meta: FolderMeta, fmt: MetadataFormat = MetadataFormat.STRUCTURED) -> bytes:
    if fmt is MetadataFormat.LEGACY:
        return render_legacy(meta).encode("utf-8")
    return render(meta).encode("utf-8")


# ── Decoding ─────────────────────────────────────────────────────────────────


def decode(data: bytes, fmt: MetadataFormat = MetadataFormat.STRUCTURED) -> FolderMeta:
    """Decode a metadata record. Raises DecodeError naming the bad field."""
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError("preamble", f"not UTF-8 text ({e.reason})") from e

    if fmt is MetadataFormat.LEGACY:
        return _decode_legacy(text)
    return _decode_structured(text)


def _split_document(text: str) -> tuple[list[str], str]:
    """Split a record into its preamble lines and the text after the closing marker."""
    # Only "\n" ends a line; str.splitlines() would also split on U+2028 and friends
    lines = text.split("\n")
    if lines[0].rstrip("\r") != MARKER:
        raise DecodeError("preamble", f"missing opening '{MARKER}' marker")

    for i, line in enumerate(lines[1:], start=1):
        if line.rstrip("\r") == MARKER:
            preamble = [raw.rstrip("\r") for raw in lines[1:i]]
            return preamble, "\n".join(lines[i + 1:])

    raise DecodeError("preamble", f"missing closing '{MARKER}' marker")


def _parse_preamble(lines: list[str]) -> dict:
    fields: dict = {}
    for line in lines:
        if not line.strip():
            continue
        key, sep, _ = line.partition("=")
        key = key.strip()
        if not sep or not key:
            raise DecodeError("preamble", f"expected 'key = value', got {line.strip()!r}")
        try:
            parsed = tomllib.loads(line)
        except tomllib.TOMLDecodeError as e:
            raise DecodeError(key, f"unparseable value ({e})") from e
        for name, value in parsed.items():
            if name in fields:
                raise DecodeError(name, "duplicate field")
            fields[name] = value
    return fields


def _extract_message(body: str) -> str | None:
    if not body:
        return None
    # Encoder writes "\n<message>\n"; strip exactly that framing
    if body.startswith("\n"):
        body = body[1:]
    if body.endswith("\n"):
        body = body[:-1]
    return body or None


def _decode_structured(text: str) -> FolderMeta:
    preamble, body = _split_document(text)
    fields = _parse_preamble(preamble)

    for name in REQUIRED_FIELDS:
        if name not in fields:
            raise DecodeError(name, "missing field")

    slug = fields["slug"]
    if not isinstance(slug, str) or not slug:
        raise DecodeError("slug", "expected a non-empty string")

    description = fields["description"]
    if not isinstance(description, str):
        raise DecodeError("description", "expected a string")

    expiry = fields["expiry"]
    if not isinstance(expiry, datetime):
        kind = "a date without time" if isinstance(expiry, date) else type(expiry).__name__
        raise DecodeError("expiry", f"expected a timestamp, got {kind}")
    if expiry.tzinfo is None:
        raise DecodeError("expiry", "timestamp has no UTC offset")

    downloads = _check_downloads(fields["downloads"])

    return _build(slug, description, expiry, downloads, _extract_message(body))


def _decode_legacy(text: str) -> FolderMeta:
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        raise DecodeError("preamble", f"invalid JSON ({e.msg})") from e
    if not isinstance(obj, dict):
        raise DecodeError("preamble", "expected a JSON object")

    slug = obj.get("foldername")
    if not isinstance(slug, str) or not slug:
        raise DecodeError("foldername", "expected a non-empty string")

    note = obj.get("note", "")
    if not isinstance(note, str):
        raise DecodeError("note", "expected a string")

    raw_expiry = obj.get("expiry")
    if not isinstance(raw_expiry, str):
        raise DecodeError("expiry", "expected an ISO-8601 string")
    try:
        expiry = datetime.fromisoformat(raw_expiry)
    except ValueError as e:
        raise DecodeError("expiry", f"unparseable timestamp {raw_expiry!r}") from e
    if expiry.tzinfo is None:
        raise DecodeError("expiry", "timestamp has no UTC offset")

    downloads = _check_downloads(obj.get("downloads", 0))

    return _build(slug, note, expiry, downloads, None)


def _check_downloads(value) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError("downloads", f"expected an integer, got {value!r}")
    if value < 0:
        raise DecodeError("downloads", f"must not be negative, got {value}")
    return value


def _build(slug, description, expiry, downloads, message) -> FolderMeta:
    try:
        return FolderMeta(
            slug=slug,
            description=description,
            expiry=expiry,
            downloads=downloads,
            message=message,
        )
    except ValidationError as e:
        err = e.errors()[0]
        field = str(err["loc"][0]) if err.get("loc") else "preamble"
        raise DecodeError(field, err["msg"]) from e
