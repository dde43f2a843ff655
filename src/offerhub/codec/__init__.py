"""
Value codec.

Maps native Python values to the tagged wire-value union the contract
speaks, and back.

Example:
    >>> from offerhub.codec import encode, decode, PROOF_HASH
    >>> wire = encode(bytes(32), PROOF_HASH)
    >>> decode(wire) == bytes(32)
    True
"""

from offerhub.codec.address import Address, AddressKind, is_valid_address
from offerhub.codec.codec import decode, encode
from offerhub.codec.shapes import (
    ADDRESS,
    BOOL,
    BYTES,
    I32,
    I64,
    I128,
    PROOF_HASH,
    STRING,
    SYMBOL,
    U32,
    U64,
    U128,
    VOID,
    MapOf,
    Option,
    Scalar,
    Shape,
    Struct,
    UnitEnum,
    Vec,
    struct,
)
from offerhub.codec.wire import WireTag, WireValue, map_key_order

__all__ = [
    "Address",
    "AddressKind",
    "is_valid_address",
    "encode",
    "decode",
    "WireTag",
    "WireValue",
    "map_key_order",
    # Shapes
    "Shape",
    "Scalar",
    "Option",
    "Vec",
    "Struct",
    "MapOf",
    "UnitEnum",
    "struct",
    "VOID",
    "BOOL",
    "U32",
    "I32",
    "U64",
    "I64",
    "U128",
    "I128",
    "BYTES",
    "STRING",
    "SYMBOL",
    "ADDRESS",
    "PROOF_HASH",
]
