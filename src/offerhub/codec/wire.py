"""
Wire values.

The closed, tagged union every argument and return value passes
through on its way to and from the ledger, plus its canonical JSON
serialization.

Canonical form:
- ``{"type": <tag>, "value": <payload>}``
- 64-bit integers are decimal strings; 128-bit integers are
  ``{"hi": "<int>", "lo": "<uint>"}`` parts
- bytes are lowercase hex
- vectors are JSON lists; maps are ordered lists of
  ``{"key": <wire>, "val": <wire>}`` entries
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple, Union

from offerhub.constants import (
    I32_MAX,
    I32_MIN,
    I64_MAX,
    I64_MIN,
    I128_MAX,
    I128_MIN,
    U32_MAX,
    U64_MAX,
    U128_MAX,
)
from offerhub.errors import DecodingError, EncodingError

_LOW_MASK = (1 << 64) - 1


class WireTag(str, Enum):
    """Tags of the wire-value union."""

    VOID = "void"
    BOOL = "bool"
    U32 = "u32"
    I32 = "i32"
    U64 = "u64"
    I64 = "i64"
    U128 = "u128"
    I128 = "i128"
    BYTES = "bytes"
    STRING = "string"
    SYMBOL = "symbol"
    ADDRESS = "address"
    VEC = "vec"
    MAP = "map"


INTEGER_BOUNDS: Dict[WireTag, Tuple[int, int]] = {
    WireTag.U32: (0, U32_MAX),
    WireTag.I32: (I32_MIN, I32_MAX),
    WireTag.U64: (0, U64_MAX),
    WireTag.I64: (I64_MIN, I64_MAX),
    WireTag.U128: (0, U128_MAX),
    WireTag.I128: (I128_MIN, I128_MAX),
}

WIDE_TAGS = frozenset({WireTag.U128, WireTag.I128})

MapEntries = Tuple[Tuple["WireValue", "WireValue"], ...]
Payload = Union[None, bool, int, bytes, str, Tuple["WireValue", ...], MapEntries]


@dataclass(frozen=True)
class WireValue:
    """
    One tagged wire value.

    Build instances through the classmethod constructors, which check
    that the payload fits the tag.

    Example:
        >>> WireValue.u64(7)
        WireValue(tag=<WireTag.U64: 'u64'>, value=7)
    """

    tag: WireTag
    value: Payload = None

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def void(cls) -> "WireValue":
        return cls(WireTag.VOID, None)

    @classmethod
    def boolean(cls, value: bool) -> "WireValue":
        if not isinstance(value, bool):
            raise EncodingError(f"bool expected, got {type(value).__name__}")
        return cls(WireTag.BOOL, value)

    @classmethod
    def integer(cls, tag: WireTag, value: int) -> "WireValue":
        if tag not in INTEGER_BOUNDS:
            raise EncodingError(f"{tag.value} is not an integer tag")
        if isinstance(value, bool) or not isinstance(value, int):
            raise EncodingError(f"{tag.value} expects an int, got {type(value).__name__}")
        low, high = INTEGER_BOUNDS[tag]
        if value < low or value > high:
            raise EncodingError(f"{value} is out of range for {tag.value} [{low}, {high}]")
        return cls(tag, value)

    @classmethod
    def u32(cls, value: int) -> "WireValue":
        return cls.integer(WireTag.U32, value)

    @classmethod
    def i32(cls, value: int) -> "WireValue":
        return cls.integer(WireTag.I32, value)

    @classmethod
    def u64(cls, value: int) -> "WireValue":
        return cls.integer(WireTag.U64, value)

    @classmethod
    def i64(cls, value: int) -> "WireValue":
        return cls.integer(WireTag.I64, value)

    @classmethod
    def u128(cls, value: int) -> "WireValue":
        return cls.integer(WireTag.U128, value)

    @classmethod
    def i128(cls, value: int) -> "WireValue":
        return cls.integer(WireTag.I128, value)

    @classmethod
    def bytes_(cls, value: Union[bytes, bytearray]) -> "WireValue":
        if not isinstance(value, (bytes, bytearray)):
            raise EncodingError(f"bytes expected, got {type(value).__name__}")
        return cls(WireTag.BYTES, bytes(value))

    @classmethod
    def string(cls, value: str) -> "WireValue":
        if not isinstance(value, str):
            raise EncodingError(f"str expected, got {type(value).__name__}")
        return cls(WireTag.STRING, value)

    @classmethod
    def symbol(cls, value: str) -> "WireValue":
        if not isinstance(value, str):
            raise EncodingError(f"symbol expected, got {type(value).__name__}")
        return cls(WireTag.SYMBOL, value)

    @classmethod
    def address(cls, value: str) -> "WireValue":
        if not isinstance(value, str):
            raise EncodingError(f"address expected, got {type(value).__name__}")
        return cls(WireTag.ADDRESS, value)

    @classmethod
    def vec(cls, items) -> "WireValue":
        return cls(WireTag.VEC, tuple(items))

    @classmethod
    def map(cls, entries) -> "WireValue":
        """Build a map, emitting entries in ascending key order."""
        return cls(WireTag.MAP, tuple(sorted(entries, key=lambda kv: map_key_order(kv[0]))))

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def is_void(self) -> bool:
        return self.tag is WireTag.VOID

    @property
    def hi(self) -> int:
        """High 64 bits of a 128-bit value (signed for I128)."""
        return self._int_value() >> 64

    @property
    def lo(self) -> int:
        """Low 64 bits of a 128-bit value, unsigned."""
        return self._int_value() & _LOW_MASK

    def _int_value(self) -> int:
        if self.tag not in WIDE_TAGS:
            raise DecodingError(f"{self.tag} has no 128-bit parts", tag=str(self.tag.value))
        return int(self.value)

    # ------------------------------------------------------------------
    # Canonical serialization
    # ------------------------------------------------------------------

    def to_json(self) -> Dict[str, Any]:
        """Return the canonical JSON-compatible form of this value."""
        tag = self.tag
        if tag is WireTag.VOID:
            payload: Any = None
        elif tag in (WireTag.BOOL, WireTag.U32, WireTag.I32):
            payload = self.value
        elif tag in (WireTag.U64, WireTag.I64):
            payload = str(self.value)
        elif tag in WIDE_TAGS:
            payload = {"hi": str(self.hi), "lo": str(self.lo)}
        elif tag is WireTag.BYTES:
            payload = self.value.hex()
        elif tag in (WireTag.STRING, WireTag.SYMBOL, WireTag.ADDRESS):
            payload = self.value
        elif tag is WireTag.VEC:
            payload = [item.to_json() for item in self.value]
        elif tag is WireTag.MAP:
            payload = [{"key": k.to_json(), "val": v.to_json()} for k, v in self.value]
        else:
            raise EncodingError(f"unsupported wire tag {tag!r}")
        return {"type": tag.value, "value": payload}

    def to_bytes(self) -> bytes:
        """Deterministic byte rendering of :meth:`to_json`."""
        return json.dumps(self.to_json(), separators=(",", ":"), ensure_ascii=False).encode("utf-8")

    @classmethod
    def from_json(cls, data: Any) -> "WireValue":
        """
        Parse the canonical JSON form.

        Raises:
            DecodingError: If the tag is unknown or the payload malformed
        """
        if not isinstance(data, dict) or "type" not in data:
            raise DecodingError("wire value must be an object with a 'type' field")

        raw_tag = data["type"]
        try:
            tag = WireTag(raw_tag)
        except ValueError:
            raise DecodingError(f"unknown wire tag {raw_tag!r}", tag=str(raw_tag)) from None

        payload = data.get("value")
        try:
            if tag is WireTag.VOID:
                return cls.void()
            if tag is WireTag.BOOL:
                return cls.boolean(payload)
            if tag in (WireTag.U32, WireTag.I32, WireTag.U64, WireTag.I64):
                return cls.integer(tag, int(payload))
            if tag in WIDE_TAGS:
                hi, lo = int(payload["hi"]), int(payload["lo"])
                return cls.integer(tag, (hi << 64) | (lo & _LOW_MASK))
            if tag is WireTag.BYTES:
                return cls.bytes_(bytes.fromhex(payload))
            if tag is WireTag.STRING:
                return cls.string(payload)
            if tag is WireTag.SYMBOL:
                return cls.symbol(payload)
            if tag is WireTag.ADDRESS:
                return cls.address(payload)
            if tag is WireTag.VEC:
                return cls.vec(cls.from_json(item) for item in payload)
            # Map entries keep their serialized order; decoding reports it as-is.
            return cls(
                WireTag.MAP,
                tuple((cls.from_json(e["key"]), cls.from_json(e["val"])) for e in payload),
            )
        except EncodingError as e:
            raise DecodingError(e.message, tag=tag.value) from e
        except (KeyError, TypeError, ValueError) as e:
            raise DecodingError(f"malformed {tag.value} payload: {e}", tag=tag.value) from e

    @classmethod
    def from_bytes(cls, data: bytes) -> "WireValue":
        try:
            return cls.from_json(json.loads(data))
        except json.JSONDecodeError as e:
            raise DecodingError(f"wire bytes are not valid JSON: {e}") from e


def map_key_order(key: WireValue) -> Tuple[Any, ...]:
    """
    Sort key for map entries.

    Symbol and string keys sort by their text; numeric keys by value;
    anything else by its canonical serialization. Keys of different tags
    group by tag first.
    """
    if key.tag in (WireTag.SYMBOL, WireTag.STRING, WireTag.ADDRESS):
        return (key.tag.value, 0, key.value, b"")
    if key.tag in INTEGER_BOUNDS or key.tag is WireTag.BOOL:
        return (key.tag.value, int(key.value), "", b"")
    return (key.tag.value, 0, "", key.to_bytes())
