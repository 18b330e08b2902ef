"""Request body encoding and response decoding.

The Keboola APIs mix three body formats:

* ``application/x-www-form-urlencoded`` for most Storage API writes.  Repeated
  values are sent bracket-indexed (``k[0]=a&k[1]=b``) and maps as
  ``k[name]=v``; the API parses them positionally.
* ``application/json`` for Syrup (orchestrator, provisioning, GoodData).
* ``multipart/form-data`` with a fixed boundary for the File Import API.

Responses are JSON with a few dialect quirks: booleans arrive as ``1``/``0``
or ``true``/``false``, ids are sometimes numbers and sometimes strings, and
timestamps use ``YYYY-MM-DDThh:mm:ss+hhmm`` with the literal ``"null"`` for
"never".  The annotated types at the bottom of this module absorb those.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Annotated, Any, Iterator, Mapping
from urllib.parse import quote_plus

import httpx
import pydantic
from pydantic import BaseModel, BeforeValidator, ConfigDict, TypeAdapter

from keboola_provider.errors import DecodeError

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"
MULTIPART_BOUNDARY = "----keboola-provider----"
MULTIPART_CONTENT_TYPE = f"multipart/form-data; boundary={MULTIPART_BOUNDARY}"


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def encode_form(fields: Mapping[str, Any]) -> bytes:
    """Encode *fields* as a urlencoded form body.

    Lists become ``key[0]=..&key[1]=..``; mappings become ``key[sub]=..``.
    Brackets are kept literal, everything else is percent-encoded.
    """
    pairs = []
    for key, value in fields.items():
        pairs.extend(_form_pairs(key, value))
    encoded = "&".join(
        f"{quote_plus(key, safe='[]')}={quote_plus(value)}" for key, value in pairs
    )
    return encoded.encode()


def _form_pairs(key: str, value: Any) -> Iterator[tuple[str, str]]:
    if isinstance(value, Mapping):
        for sub_key, item in value.items():
            yield from _form_pairs(f"{key}[{sub_key}]", item)
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            yield from _form_pairs(f"{key}[{index}]", item)
    else:
        yield key, _form_scalar(value)


def _form_scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_jsonable(value: Any) -> Any:
    """Convert API models (and containers of them) into plain JSON data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, Mapping):
        return {key: to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value


def encode_json(value: Any) -> bytes:
    return json.dumps(to_jsonable(value), separators=(",", ":")).encode()


def encode_multipart(fields: Mapping[str, str]) -> bytes:
    """Encode *fields* as ``multipart/form-data`` using :data:`MULTIPART_BOUNDARY`."""
    # httpx encodes multipart bodies only as part of a request; a filename of
    # None makes each part a plain form field.
    request = httpx.Request(
        "POST",
        "http://localhost/",
        files={name: (None, value) for name, value in fields.items()},
        headers={"Content-Type": MULTIPART_CONTENT_TYPE},
    )
    return request.read()


@dataclass(frozen=True)
class Payload:
    """An encoded request body together with its content type."""

    content: bytes
    content_type: str

    @classmethod
    def from_form(cls, fields: Mapping[str, Any]) -> "Payload":
        return cls(encode_form(fields), FORM_CONTENT_TYPE)

    @classmethod
    def from_json(cls, value: Any) -> "Payload":
        return cls(encode_json(value), JSON_CONTENT_TYPE)

    @classmethod
    def from_multipart(cls, fields: Mapping[str, str]) -> "Payload":
        return cls(encode_multipart(fields), MULTIPART_CONTENT_TYPE)

    @classmethod
    def empty(cls) -> "Payload":
        return cls(b"", FORM_CONTENT_TYPE)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

class ApiModel(BaseModel):
    """Base for API contract models: camelCase aliases, unknown fields ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


@lru_cache(maxsize=None)
def _adapter(shape: Any) -> TypeAdapter:
    return TypeAdapter(shape)


def decode_json(content: bytes | str, shape: Any = None) -> Any:
    """Decode a JSON body, optionally validating it into *shape*.

    *shape* is a pydantic model class or any type a :class:`TypeAdapter`
    accepts (``list[Model]``...).  Raises :class:`DecodeError` on malformed
    JSON or a shape mismatch.
    """
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DecodeError(f"Malformed JSON response: {exc}") from exc
    if shape is None:
        return data
    try:
        return _adapter(shape).validate_python(data)
    except pydantic.ValidationError as exc:
        raise DecodeError(f"Unexpected response shape for {_shape_name(shape)}: {exc}") from exc


def _shape_name(shape: Any) -> str:
    return getattr(shape, "__name__", None) or str(shape)


def equivalent_json(first: str | None, second: str | None) -> bool:
    """Compare two JSON documents ignoring all whitespace."""
    return _strip_whitespace(first or "") == _strip_whitespace(second or "")


def _strip_whitespace(text: str) -> str:
    return "".join(ch for ch in text if not ch.isspace())


# ---------------------------------------------------------------------------
# Keboola JSON dialect
# ---------------------------------------------------------------------------

_TRUE_TOKENS = frozenset({"1", "true"})
_FALSE_TOKENS = frozenset({"0", "false"})


def _token(value: Any) -> str:
    # Mirror the raw JSON token the API sent.
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    return json.dumps(value)


def parse_kbc_boolean(value: Any) -> bool:
    """Accept exactly ``1``, ``0``, ``true`` and ``false``."""
    token = _token(value)
    if token in _TRUE_TOKENS:
        return True
    if token in _FALSE_TOKENS:
        return False
    raise DecodeError(f"error unmarshaling to boolean: invalid input {token}")


def parse_kbc_boolean_number(value: Any) -> int:
    """``true``/``false`` map to 1/0, integers pass through."""
    token = _token(value)
    if token == "true":
        return 1
    if token == "false":
        return 0
    try:
        return int(token)
    except ValueError:
        raise DecodeError(f"error unmarshaling to boolean/integer: invalid input {token}") from None


def parse_kbc_number_string(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return value


KBC_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
_KBC_TIME_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}[+-]\d{4}$")

# Equivalent of an unset timestamp.
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


def parse_kbc_time(value: Any) -> datetime:
    """Parse ``YYYY-MM-DDThh:mm:ss+hhmm``; ``"null"`` is :data:`ZERO_TIME`."""
    if value is None or value == "null":
        return ZERO_TIME
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not _KBC_TIME_PATTERN.match(value):
        raise DecodeError(f"error unmarshaling to time: invalid input {value!r}")
    try:
        return datetime.strptime(value, KBC_TIME_FORMAT)
    except ValueError as exc:
        raise DecodeError(f"error unmarshaling to time: {exc}") from exc


def format_kbc_time(value: datetime) -> str:
    return value.strftime(KBC_TIME_FORMAT)


KBCBoolean = Annotated[bool, BeforeValidator(parse_kbc_boolean)]
KBCBooleanNumber = Annotated[int, BeforeValidator(parse_kbc_boolean_number)]
KBCNumberString = Annotated[str, BeforeValidator(parse_kbc_number_string)]
KBCTime = Annotated[datetime, BeforeValidator(parse_kbc_time)]
