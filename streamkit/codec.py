"""Pluggable payload encoders and decoders."""

from __future__ import annotations

import dataclasses
import datetime as _dt
import json
from abc import ABC, abstractmethod
from typing import Any


class Codec(ABC):
    """Turns values into bytes and back."""

    @abstractmethod
    def encode(self, value: Any) -> bytes:
        """Serialise ``value`` to bytes."""

    @abstractmethod
    def decode(self, data: bytes | str) -> Any:
        """Deserialise ``data`` into a value."""

    @abstractmethod
    def content_type(self) -> str:
        """The MIME type of the encoded form."""


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, _dt.datetime):
        text = value.isoformat()
        if text.endswith("+00:00"):
            text = text[: -len("+00:00")] + "Z"
        return text
    if isinstance(value, _dt.date):
        return value.isoformat()
    raise TypeError(f"value of type {type(value).__name__} is not JSON serialisable")


class JSONCodec(Codec):
    """Compact UTF-8 JSON codec.

    Dataclasses are encoded as objects and datetimes as RFC 3339 strings.
    Encoding raises ``TypeError`` for unsupported values and ``ValueError``
    for NaN or infinities; decoding raises ``ValueError`` for invalid input.
    """

    def encode(self, value: Any) -> bytes:
        text = json.dumps(
            value,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
            default=_json_default,
        )
        return text.encode("utf-8")

    def decode(self, data: bytes | str) -> Any:
        return json.loads(data)

    def content_type(self) -> str:
        return "application/json"

    def __repr__(self) -> str:
        return "JSONCodec()"


JSON_CODEC: Codec = JSONCodec()