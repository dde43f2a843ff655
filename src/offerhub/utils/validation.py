"""
Validation utilities for the OfferHub SDK.

Local preconditions checked before a write is built:
- account addresses
- profile metadata URI, display name and country code
- 32-byte proof and email hashes
- linked identifiers and claim types

All functions raise ValidationError (or a subclass) and return the
normalized value on success.
"""

from __future__ import annotations

import re
from typing import Optional, Union

from offerhub.codec.address import Address
from offerhub.constants import (
    COUNTRY_CODE_LENGTH,
    MAX_METADATA_URI_LENGTH,
    MAX_SYMBOL_LENGTH,
    MIN_IDENTIFIER_LENGTH,
    PROOF_HASH_LENGTH,
    SYMBOL_PATTERN,
    U64_MAX,
)
from offerhub.errors import ValidationError

_SYMBOL_RE = re.compile(SYMBOL_PATTERN)


def validate_address(address: Union[str, Address], field_name: str = "address") -> str:
    """
    Validate an account or contract address.

    Returns:
        The address string, surrounding whitespace removed

    Raises:
        InvalidAddressError: If the address is missing or malformed
    """
    return Address.parse(address, field=field_name).value


def validate_metadata_uri(uri: str, field_name: str = "metadata_uri") -> str:
    if not isinstance(uri, str) or not uri:
        raise ValidationError(f"{field_name} is required", field=field_name)
    if len(uri) > MAX_METADATA_URI_LENGTH:
        raise ValidationError(
            f"{field_name} must be at most {MAX_METADATA_URI_LENGTH} characters, got {len(uri)}",
            field=field_name,
            details={"length": len(uri), "max_length": MAX_METADATA_URI_LENGTH},
        )
    return uri


def validate_display_name(name: str, field_name: str = "display_name") -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(f"{field_name} is required", field=field_name)
    return name


def validate_country_code(code: Optional[str], field_name: str = "country_code") -> Optional[str]:
    """Optional two-letter country code, returned upper-cased."""
    if code is None:
        return None
    if not isinstance(code, str) or len(code) != COUNTRY_CODE_LENGTH or not code.isalpha():
        raise ValidationError(
            f"{field_name} must be {COUNTRY_CODE_LENGTH} letters, got {code!r}",
            field=field_name,
        )
    return code.upper()


def validate_proof_hash(value: Union[bytes, bytearray], field_name: str = "proof_hash") -> bytes:
    """
    Require exactly 32 bytes.

    Use :func:`offerhub.proof.hex_to_proof_hash` to convert a hex digest first.
    """
    if not isinstance(value, (bytes, bytearray)):
        raise ValidationError(
            f"{field_name} must be bytes, got {type(value).__name__}",
            field=field_name,
        )
    if len(value) != PROOF_HASH_LENGTH:
        raise ValidationError(
            f"{field_name} must be exactly {PROOF_HASH_LENGTH} bytes, got {len(value)}",
            field=field_name,
            details={"length": len(value)},
        )
    return bytes(value)


def validate_identifier(identifier: str, field_name: str = "identifier") -> str:
    """Linked identifier (e.g. a DID), at least 10 characters."""
    if not isinstance(identifier, str) or len(identifier.strip()) < MIN_IDENTIFIER_LENGTH:
        raise ValidationError(
            f"{field_name} must be at least {MIN_IDENTIFIER_LENGTH} characters",
            field=field_name,
        )
    return identifier.strip()


def validate_claim_type(claim_type: str, field_name: str = "claim_type") -> str:
    if not isinstance(claim_type, str) or not claim_type.strip():
        raise ValidationError(f"{field_name} is required", field=field_name)
    return claim_type


def validate_claim_id(claim_id: int, field_name: str = "claim_id") -> int:
    if isinstance(claim_id, bool) or not isinstance(claim_id, int):
        raise ValidationError(f"{field_name} must be an integer", field=field_name)
    if claim_id < 0 or claim_id > U64_MAX:
        raise ValidationError(f"{field_name} is out of range: {claim_id}", field=field_name)
    return claim_id


def validate_platform(platform: str, field_name: str = "platform") -> str:
    """Linked-account platform name; stored on the ledger as a symbol."""
    if (
        not isinstance(platform, str)
        or not platform
        or len(platform) > MAX_SYMBOL_LENGTH
        or not _SYMBOL_RE.match(platform)
    ):
        raise ValidationError(
            f"{field_name} must be 1-{MAX_SYMBOL_LENGTH} characters of [a-zA-Z0-9_], got {platform!r}",
            field=field_name,
        )
    return platform
