"""Proof helpers - content hashing for claims and profiles.

Claims carry a 32-byte ``proof_hash``. These helpers derive it from the
delivered work the same way the OfferHub web app does, so a hash
computed here matches one computed in the browser.
"""

from __future__ import annotations

import hashlib
import json
import re
from datetime import date, datetime
from typing import Iterable, Optional, Union

from offerhub.constants import PROOF_HASH_LENGTH
from offerhub.errors import ValidationError

MAX_CLAIM_TYPE_LENGTH = 64

_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")


def hash_content(content: Union[str, bytes]) -> bytes:
    """SHA-256 of ``content`` (UTF-8 for strings); 32 bytes.

    Example:
        >>> hash_content("Hello, world!").hex()
        '315f5bdb76d078c43b8ac0064e4a0164612b1fce77c869345bfc94c75894edd3'
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).digest()


def hash_email(email: str) -> bytes:
    """Profile ``email_hash``: SHA-256 of the trimmed, lower-cased address."""
    return hash_content(email.strip().lower())


def _as_iso(value: Union[str, date, datetime]) -> str:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def generate_work_proof_hash(
    title: str,
    description: str,
    delivery_urls: Iterable[str],
    delivery_date: Union[str, date, datetime],
    *,
    file_content: Optional[bytes] = None,
    file_hash: Optional[str] = None,
) -> bytes:
    """Generate the proof hash of a work delivery.

    The delivery is serialized as compact JSON with sorted keys::

        {"delivery_date", "delivery_urls", "description", "file_hash"?, "title"}

    Title and description are trimmed, blank URLs dropped, and
    ``file_hash`` (hex SHA-256 of the delivered file) included only when
    a file was delivered.

    Args:
        title: Work title
        description: Work description
        delivery_urls: Links to the delivered work
        delivery_date: ISO date string, or a date/datetime
        file_content: Delivered file; hashed into ``file_hash``
        file_hash: Precomputed hex hash of the delivered file

    Returns:
        32-byte proof hash

    Raises:
        ValidationError: If both ``file_content`` and ``file_hash`` are given
    """
    if file_content is not None and file_hash is not None:
        raise ValidationError("pass file_content or file_hash, not both", field="file_hash")
    if file_content is not None:
        file_hash = hashlib.sha256(file_content).hexdigest()

    data = {
        "title": title.strip(),
        "description": description.strip(),
        "delivery_urls": [url for url in delivery_urls if url.strip()],
        "delivery_date": _as_iso(delivery_date),
    }
    if file_hash:
        data["file_hash"] = file_hash

    payload = json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hash_content(payload)


def generate_claim_type(title: str, delivery_date: Union[str, date, datetime]) -> str:
    """Readable claim type from a work title and delivery date.

    Keeps the first three words longer than two characters, e.g.
    ``"OfferHub website redesign"`` delivered ``2025-01-20`` gives
    ``"job_offerhub_website_redesign_2025_01_20"``. Capped at 64 characters.
    """
    words = [
        word
        for word in re.sub(r"[^a-z0-9\s]", "", title.lower()).split()
        if len(word) > 2
    ][:3]

    if isinstance(delivery_date, str):
        delivery_date = datetime.fromisoformat(delivery_date.replace("Z", "+00:00"))
    day = delivery_date.strftime("%Y_%m_%d")

    return f"job_{'_'.join(words) or 'work'}_{day}"[:MAX_CLAIM_TYPE_LENGTH]


def hex_to_proof_hash(value: str) -> bytes:
    """Parse a 64-digit hex string, with or without ``0x``, into 32 bytes.

    Raises:
        ValidationError: If the string is not 32 bytes of hex
    """
    text = value.strip()
    if text[:2].lower() == "0x":
        text = text[2:]
    if len(text) != PROOF_HASH_LENGTH * 2 or not _HEX_RE.match(text):
        raise ValidationError(
            f"proof hash must be {PROOF_HASH_LENGTH * 2} hex digits, got {value!r}",
            field="proof_hash",
        )
    return bytes.fromhex(text)


def proof_hash_to_hex(value: bytes, *, prefix: bool = True) -> str:
    """Render a proof hash as hex, ``0x``-prefixed by default."""
    return ("0x" if prefix else "") + bytes(value).hex()
