"""Return-value extraction from finalized transactions."""

from __future__ import annotations

from typing import Any, Optional

from offerhub.codec import Shape, decode
from offerhub.types import TransactionMeta


def extract_return(meta: Optional[TransactionMeta], expected: Optional[Shape] = None) -> Any:
    """
    Decode the invoked function's return value.

    The value is read from the first operation result, since envelopes
    carry exactly one invocation. No metadata, no result or a Void
    return all yield ``None``.

    Raises:
        DecodingError: If the value does not decode (or does not match ``expected``)
    """
    if meta is None or not meta.results:
        return None
    value = meta.results[0].return_value
    if value is None or value.is_void:
        return None
    return decode(value, expected)
