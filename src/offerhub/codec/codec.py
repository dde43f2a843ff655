"""
Native <-> wire conversion.

:func:`encode` is driven by the requested shape; :func:`decode` is driven
by the tag actually present on the wire. Both are pure functions.

128-bit integers decode to their low 64 bits only (I128 reinterpreted as
a signed 64-bit value). A warning is logged whenever that loses
information.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from enum import Enum
from typing import Any, Callable, Dict, Optional

from offerhub.codec.address import Address
from offerhub.codec.shapes import MapOf, Option, Scalar, Shape, Struct, UnitEnum, Vec
from offerhub.codec.wire import INTEGER_BOUNDS, WireTag, WireValue
from offerhub.constants import MAX_SYMBOL_LENGTH, SYMBOL_PATTERN
from offerhub.errors import DecodingError, EncodingError, InvalidAddressError
from offerhub.utils.logging import get_logger

_logger = get_logger(__name__)

_SYMBOL_RE = re.compile(SYMBOL_PATTERN)
_LOW_MASK = (1 << 64) - 1
_SIGN_BIT = 1 << 63


# ============================================================================
# Encoding
# ============================================================================


def encode(native: Any, shape: Shape, *, path: str = "") -> WireValue:
    """
    Encode ``native`` as ``shape``.

    Args:
        native: Python value
        shape: Target shape
        path: Location of ``native`` inside the top-level argument, for errors

    Returns:
        Wire value

    Raises:
        EncodingError: If the value does not fit the shape

    Example:
        >>> encode(7, U64)
        WireValue(tag=<WireTag.U64: 'u64'>, value=7)
    """
    encoder = _ENCODERS.get(type(shape))
    if encoder is None:
        raise EncodingError(f"unsupported shape {shape!r}", path=path or None)
    return encoder(native, shape, path)


def _encode_scalar(native: Any, shape: Scalar, path: str) -> WireValue:
    tag = shape.tag
    try:
        if tag is WireTag.VOID:
            if native is not None:
                raise EncodingError(f"void expects None, got {type(native).__name__}")
            return WireValue.void()
        if tag is WireTag.BOOL:
            return WireValue.boolean(native)
        if tag in INTEGER_BOUNDS:
            return WireValue.integer(tag, native)
        if tag is WireTag.BYTES:
            value = WireValue.bytes_(native)
            _check_length(len(value.value), shape, unit="bytes")
            return value
        if tag is WireTag.STRING:
            value = WireValue.string(native)
            _check_length(len(value.value), shape, unit="characters")
            return value
        if tag is WireTag.SYMBOL:
            return _encode_symbol(native, shape)
        if tag is WireTag.ADDRESS:
            return _encode_address(native)
    except EncodingError as e:
        if e.path or not path:
            raise
        raise EncodingError(e.message, path=path, details=e.details) from None
    raise EncodingError(f"{tag.value} is not a scalar tag", path=path or None)


def _check_length(length: int, shape: Scalar, *, unit: str) -> None:
    if shape.length is not None and length != shape.length:
        raise EncodingError(
            f"must be exactly {shape.length} {unit}, got {length}",
            details={"length": length, "expected": shape.length},
        )
    if shape.max_length is not None and length > shape.max_length:
        raise EncodingError(
            f"must be at most {shape.max_length} {unit}, got {length}",
            details={"length": length, "max_length": shape.max_length},
        )


def _encode_symbol(native: Any, shape: Scalar) -> WireValue:
    value = WireValue.symbol(native.value if isinstance(native, Enum) else native)
    limit = min(shape.max_length or MAX_SYMBOL_LENGTH, MAX_SYMBOL_LENGTH)
    if len(value.value) > limit:
        raise EncodingError(f"symbol longer than {limit} characters: {value.value!r}")
    if not _SYMBOL_RE.match(value.value):
        raise EncodingError(f"symbol may only contain [a-zA-Z0-9_]: {value.value!r}")
    return value


def _encode_address(native: Any) -> WireValue:
    try:
        address = Address.parse(native)
    except InvalidAddressError as e:
        raise EncodingError(f"invalid address: {e.reason or e.message}") from e
    return WireValue.address(address.value)


def _encode_option(native: Any, shape: Option, path: str) -> WireValue:
    if native is None:
        return WireValue.void()
    return encode(native, shape.inner, path=path)


def _encode_vec(native: Any, shape: Vec, path: str) -> WireValue:
    if isinstance(native, (str, bytes, bytearray, Mapping)) or not hasattr(native, "__iter__"):
        raise EncodingError(f"list expected, got {type(native).__name__}", path=path or None)
    return WireValue.vec(
        encode(item, shape.inner, path=f"{path}[{i}]") for i, item in enumerate(native)
    )


def _encode_struct(native: Any, shape: Struct, path: str) -> WireValue:
    if isinstance(native, Mapping):
        unknown = set(native) - {name for name, _ in shape.fields}
        if unknown:
            raise EncodingError(
                f"unknown {shape.name} field(s): {', '.join(sorted(map(str, unknown)))}",
                path=path or None,
            )
        lookup = native.get
        present = native.__contains__
    else:
        lookup = lambda name: getattr(native, name, None)  # noqa: E731
        present = lambda name: hasattr(native, name)  # noqa: E731

    entries = []
    for name, field_shape in shape.fields:
        field_path = f"{path}.{name}" if path else name
        if not present(name):
            if isinstance(field_shape, Option):
                value = None
            else:
                raise EncodingError(f"missing {shape.name} field", path=field_path)
        else:
            value = lookup(name)
        entries.append((WireValue.symbol(name), encode(value, field_shape, path=field_path)))
    return WireValue.map(entries)


def _encode_map(native: Any, shape: MapOf, path: str) -> WireValue:
    if not isinstance(native, Mapping):
        raise EncodingError(f"mapping expected, got {type(native).__name__}", path=path or None)
    entries = []
    for key, value in native.items():
        entry_path = f"{path}[{key!r}]"
        entries.append(
            (encode(key, shape.key, path=entry_path), encode(value, shape.value, path=entry_path))
        )
    return WireValue.map(entries)


def _encode_unit_enum(native: Any, shape: UnitEnum, path: str) -> WireValue:
    variant = native.value if isinstance(native, Enum) else native
    if variant not in shape.variants:
        raise EncodingError(
            f"{variant!r} is not a {shape.name} variant {list(shape.variants)}",
            path=path or None,
        )
    return WireValue.vec([WireValue.symbol(variant)])


_ENCODERS: Dict[type, Callable[[Any, Any, str], WireValue]] = {
    Scalar: _encode_scalar,
    Option: _encode_option,
    Vec: _encode_vec,
    Struct: _encode_struct,
    MapOf: _encode_map,
    UnitEnum: _encode_unit_enum,
}


# ============================================================================
# Decoding
# ============================================================================


def decode(wire: WireValue, expected: Optional[Shape] = None) -> Any:
    """
    Decode a wire value into its native Python form.

    Args:
        wire: Value received from the ledger
        expected: Shape the caller expects; a mismatching tag is an error

    Returns:
        ``None`` for Void, ``bool``, ``int``, ``bytes``, ``str`` (strings,
        symbols and addresses), ``list`` for Vec and ``dict`` for Map.
        A :class:`UnitEnum` shape yields the variant name.

    Raises:
        DecodingError: On an unknown tag, a tag mismatch or a malformed payload
    """
    if not isinstance(wire, WireValue):
        raise DecodingError(f"wire value expected, got {type(wire).__name__}")

    try:
        tag = WireTag(wire.tag)
    except ValueError:
        raise DecodingError(f"unknown wire tag {wire.tag!r}", tag=str(wire.tag)) from None
    decoder = _DECODERS.get(tag)
    if decoder is None:
        raise DecodingError(f"no decoder for wire tag {tag.value}", tag=tag.value)
    if tag is not wire.tag:
        wire = WireValue(tag, wire.value)

    if expected is not None:
        if not expected.accepts(wire.tag):
            raise DecodingError(
                f"expected {expected.describe()}, got {wire.tag.value}",
                tag=wire.tag.value,
            )
        if isinstance(expected, Option):
            if wire.is_void:
                return None
            expected = expected.inner

    return decoder(wire, expected)


def _decode_void(wire: WireValue, expected: Optional[Shape]) -> None:
    return None


def _decode_plain(wire: WireValue, expected: Optional[Shape]) -> Any:
    return wire.value


def _decode_u128(wire: WireValue, expected: Optional[Shape]) -> int:
    low = wire.lo
    if low != wire.value:
        _log_truncation(wire, low)
    return low


def _decode_i128(wire: WireValue, expected: Optional[Shape]) -> int:
    low = wire.lo
    result = low - (1 << 64) if low & _SIGN_BIT else low
    if result != wire.value:
        _log_truncation(wire, result)
    return result


def _log_truncation(wire: WireValue, result: int) -> None:
    _logger.warning(
        "128-bit value truncated to its low 64 bits",
        extra={"tag": wire.tag.value, "hi": str(wire.hi), "lo": str(wire.lo), "decoded": result},
    )


def _decode_address(wire: WireValue, expected: Optional[Shape]) -> str:
    try:
        return Address.parse(wire.value).value
    except InvalidAddressError as e:
        raise DecodingError(f"invalid address on the wire: {e.reason}", tag=wire.tag.value) from e


def _decode_vec(wire: WireValue, expected: Optional[Shape]) -> Any:
    if isinstance(expected, UnitEnum):
        return _decode_unit_enum(wire, expected)
    inner = expected.inner if isinstance(expected, Vec) else None
    return [decode(item, inner) for item in wire.value]


def _decode_unit_enum(wire: WireValue, shape: UnitEnum) -> str:
    items = wire.value
    if len(items) != 1 or items[0].tag is not WireTag.SYMBOL:
        raise DecodingError(f"{shape.name} must be a one-element vec of a symbol", tag=wire.tag.value)
    variant = items[0].value
    if variant not in shape.variants:
        raise DecodingError(f"unknown {shape.name} variant {variant!r}", tag=wire.tag.value)
    return variant


def _decode_map(wire: WireValue, expected: Optional[Shape]) -> Dict[Any, Any]:
    key_shape: Optional[Shape] = None
    value_shape: Optional[Shape] = None
    fields: Dict[str, Shape] = {}
    if isinstance(expected, MapOf):
        key_shape, value_shape = expected.key, expected.value
    elif isinstance(expected, Struct):
        fields = expected.field_map

    result: Dict[Any, Any] = {}
    for key_wire, value_wire in wire.value:
        key = decode(key_wire, key_shape)
        try:
            hash(key)
        except TypeError:
            raise DecodingError(
                f"map key of type {key_wire.tag.value} cannot be a dict key",
                tag=wire.tag.value,
            ) from None
        shape = fields.get(key) if fields else value_shape
        result[key] = decode(value_wire, shape)
    return result


_DECODERS: Dict[WireTag, Callable[[WireValue, Optional[Shape]], Any]] = {
    WireTag.VOID: _decode_void,
    WireTag.BOOL: _decode_plain,
    WireTag.U32: _decode_plain,
    WireTag.I32: _decode_plain,
    WireTag.U64: _decode_plain,
    WireTag.I64: _decode_plain,
    WireTag.U128: _decode_u128,
    WireTag.I128: _decode_i128,
    WireTag.BYTES: _decode_plain,
    WireTag.STRING: _decode_plain,
    WireTag.SYMBOL: _decode_plain,
    WireTag.ADDRESS: _decode_address,
    WireTag.VEC: _decode_vec,
    WireTag.MAP: _decode_map,
}
