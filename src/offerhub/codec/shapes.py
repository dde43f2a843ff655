"""
Shape descriptors.

A shape tells the encoder which wire tag a native value must become,
and tells the decoder which tag to expect back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from offerhub.codec.wire import INTEGER_BOUNDS, WireTag
from offerhub.constants import PROOF_HASH_LENGTH


class Shape:
    """Base class of all shape descriptors."""

    def accepts(self, tag: WireTag) -> bool:
        raise NotImplementedError

    def describe(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.describe()


@dataclass(frozen=True)
class Scalar(Shape):
    """
    A single non-composite tag.

    Attributes:
        tag: Wire tag to produce
        max_length: Upper bound on characters (strings/symbols) or bytes
        length: Exact byte length (fixed-size byte arrays)
        aliases: Other tags accepted when decoding
    """

    tag: WireTag
    max_length: Optional[int] = None
    length: Optional[int] = None
    aliases: Tuple[WireTag, ...] = ()

    def accepts(self, tag: WireTag) -> bool:
        # Integer results are accepted at any width; the decoder normalizes them.
        if self.tag in INTEGER_BOUNDS:
            return tag in INTEGER_BOUNDS
        return tag is self.tag or tag in self.aliases

    def describe(self) -> str:
        if self.length is not None:
            return f"{self.tag.value}({self.length})"
        return self.tag.value


@dataclass(frozen=True)
class Option(Shape):
    """``None`` encodes as Void; anything else as ``inner``."""

    inner: Shape

    def accepts(self, tag: WireTag) -> bool:
        return tag is WireTag.VOID or self.inner.accepts(tag)

    def describe(self) -> str:
        return f"{self.inner.describe()}?"


@dataclass(frozen=True)
class Vec(Shape):
    """Ordered list of ``inner`` values."""

    inner: Shape

    def accepts(self, tag: WireTag) -> bool:
        return tag is WireTag.VEC

    def describe(self) -> str:
        return f"vec<{self.inner.describe()}>"


@dataclass(frozen=True)
class Struct(Shape):
    """
    Named fields encoded as a map with symbol keys.

    The encoder emits fields in ascending key order regardless of the
    order given here.
    """

    name: str
    fields: Tuple[Tuple[str, Shape], ...]

    @property
    def field_map(self) -> Dict[str, Shape]:
        return dict(self.fields)

    def accepts(self, tag: WireTag) -> bool:
        return tag is WireTag.MAP

    def describe(self) -> str:
        return self.name


@dataclass(frozen=True)
class MapOf(Shape):
    """Homogeneous key/value map."""

    key: Shape
    value: Shape

    def accepts(self, tag: WireTag) -> bool:
        return tag is WireTag.MAP

    def describe(self) -> str:
        return f"map<{self.key.describe()}, {self.value.describe()}>"


@dataclass(frozen=True)
class UnitEnum(Shape):
    """Contract enum without payloads, encoded as ``vec[symbol(variant)]``."""

    name: str
    variants: Tuple[str, ...]

    def accepts(self, tag: WireTag) -> bool:
        return tag is WireTag.VEC

    def describe(self) -> str:
        return self.name


def struct(name: str, **fields: Shape) -> Struct:
    """Convenience constructor: ``struct("LinkedAccount", platform=SYMBOL, handle=STRING)``."""
    return Struct(name, tuple(fields.items()))


VOID = Scalar(WireTag.VOID)
BOOL = Scalar(WireTag.BOOL)
U32 = Scalar(WireTag.U32)
I32 = Scalar(WireTag.I32)
U64 = Scalar(WireTag.U64)
I64 = Scalar(WireTag.I64)
U128 = Scalar(WireTag.U128)
I128 = Scalar(WireTag.I128)
BYTES = Scalar(WireTag.BYTES)
STRING = Scalar(WireTag.STRING)
SYMBOL = Scalar(WireTag.SYMBOL)
ADDRESS = Scalar(WireTag.ADDRESS)
PROOF_HASH = Scalar(WireTag.BYTES, length=PROOF_HASH_LENGTH)
