"""
Ledger addresses.

Addresses are StrKey strings: base32 of a version byte, a 32-byte
payload and a little-endian CRC16-XModem checksum. Accounts start
with ``G`` and contracts with ``C``.
"""

from __future__ import annotations

import base64
import binascii
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Union

from offerhub.constants import (
    ACCOUNT_ADDRESS_PREFIX,
    ADDRESS_LENGTH,
    CONTRACT_ADDRESS_PREFIX,
)
from offerhub.errors import InvalidAddressError

_PAYLOAD_LENGTH = 32


class AddressKind(str, Enum):
    """Discriminant of an address, carried by its first character."""

    ACCOUNT = "account"
    CONTRACT = "contract"


_VERSION_BYTES = {
    AddressKind.ACCOUNT: 6 << 3,
    AddressKind.CONTRACT: 2 << 3,
}
_PREFIXES = {
    ACCOUNT_ADDRESS_PREFIX: AddressKind.ACCOUNT,
    CONTRACT_ADDRESS_PREFIX: AddressKind.CONTRACT,
}


def _checksum(data: bytes) -> bytes:
    return struct.pack("<H", binascii.crc_hqx(data, 0))


@dataclass(frozen=True)
class Address:
    """
    Validated, immutable account or contract address.

    Example:
        >>> addr = Address.parse("GAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAWHF")
        >>> addr.kind
        <AddressKind.ACCOUNT: 'account'>
    """

    value: str

    def __post_init__(self) -> None:
        _decode(self.value)

    @classmethod
    def parse(cls, value: Union[str, "Address"], field: str = "address") -> "Address":
        """
        Parse and validate an address.

        Args:
            value: StrKey string (or an existing Address)
            field: Field name for error messages

        Returns:
            Address instance

        Raises:
            InvalidAddressError: If the address is malformed
        """
        if isinstance(value, Address):
            return value
        if not isinstance(value, str) or not value:
            raise InvalidAddressError(str(value or ""), field=field, reason=f"{field} is required")
        try:
            return cls(value.strip())
        except InvalidAddressError as e:
            raise InvalidAddressError(value, field=field, reason=e.reason) from None

    @classmethod
    def from_payload(cls, payload: bytes, kind: AddressKind = AddressKind.ACCOUNT) -> "Address":
        """Build an address from a raw 32-byte key or contract hash."""
        if len(payload) != _PAYLOAD_LENGTH:
            raise InvalidAddressError(
                payload.hex(),
                reason=f"payload must be {_PAYLOAD_LENGTH} bytes",
            )
        body = bytes([_VERSION_BYTES[kind]]) + bytes(payload)
        return cls(base64.b32encode(body + _checksum(body)).decode("ascii"))

    @property
    def kind(self) -> AddressKind:
        return _PREFIXES[self.value[0]]

    @property
    def is_account(self) -> bool:
        return self.kind is AddressKind.ACCOUNT

    @property
    def is_contract(self) -> bool:
        return self.kind is AddressKind.CONTRACT

    @property
    def payload(self) -> bytes:
        return _decode(self.value)

    def __str__(self) -> str:
        return self.value


def _decode(value: str) -> bytes:
    if not isinstance(value, str) or len(value) != ADDRESS_LENGTH:
        raise InvalidAddressError(
            str(value),
            reason=f"must be {ADDRESS_LENGTH} characters",
        )

    kind = _PREFIXES.get(value[0])
    if kind is None:
        raise InvalidAddressError(
            value,
            reason="must start with G (account) or C (contract)",
        )

    try:
        raw = base64.b32decode(value)
    except (binascii.Error, ValueError):
        raise InvalidAddressError(value, reason="not valid base32") from None

    body, checksum = raw[:-2], raw[-2:]
    if body[0] != _VERSION_BYTES[kind]:
        raise InvalidAddressError(value, reason="version byte does not match prefix")
    if _checksum(body) != checksum:
        raise InvalidAddressError(value, reason="checksum mismatch")

    return body[1:]


def is_valid_address(value: str) -> bool:
    """Return True if ``value`` is a well-formed account or contract address."""
    try:
        _decode(value)
    except InvalidAddressError:
        return False
    return True
