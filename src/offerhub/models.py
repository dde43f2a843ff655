"""
Domain records returned by the OfferHub facade.

Each record knows how to build itself from the decoded contract value
(``from_native``) and how to present itself as the native mapping the
encoder expects (``to_native``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from offerhub.errors import DecodingError

__all__ = ["ClaimStatus", "LinkedAccount", "Profile", "Claim"]


class ClaimStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


@dataclass(frozen=True)
class LinkedAccount:
    """External account shown on a profile, e.g. ``LinkedAccount("github", "octocat")``."""

    platform: str
    handle: str

    @classmethod
    def from_native(cls, data: Mapping[str, Any]) -> "LinkedAccount":
        return cls(platform=str(data["platform"]), handle=str(data["handle"]))

    def to_native(self) -> Dict[str, Any]:
        return {"platform": self.platform, "handle": self.handle}


@dataclass
class Profile:
    """On-ledger profile of an account.

    Attributes:
        owner: Account that owns the profile
        metadata_uri: URI of the off-ledger profile document (1-256 chars)
        display_name: Public name
        country_code: Optional two-letter country code
        email_hash: Optional 32-byte hash of the contact e-mail
        linked_accounts: External accounts
        joined_at: Ledger timestamp (seconds) of registration
        identifier: Linked decentralized identifier, if any
    """

    owner: str
    metadata_uri: str
    display_name: str
    country_code: Optional[str] = None
    email_hash: Optional[bytes] = None
    linked_accounts: List[LinkedAccount] = field(default_factory=list)
    joined_at: int = 0
    identifier: Optional[str] = None

    @classmethod
    def from_native(cls, data: Optional[Mapping[str, Any]]) -> Optional["Profile"]:
        """
        Build a profile from a decoded contract value.

        An absent profile arrives either as Void or as an empty map; both
        yield ``None``.
        """
        if not data:
            return None
        try:
            return cls(
                owner=data["owner"],
                metadata_uri=data["metadata_uri"],
                display_name=data["display_name"],
                country_code=data.get("country_code"),
                email_hash=data.get("email_hash"),
                linked_accounts=[
                    LinkedAccount.from_native(item) for item in data.get("linked_accounts") or []
                ],
                joined_at=int(data.get("joined_at") or 0),
                # Stored as "did" by the contract.
                identifier=data.get("identifier", data.get("did")),
            )
        except (KeyError, TypeError) as e:
            raise DecodingError(f"malformed profile: {e}") from e

    def to_native(self) -> Dict[str, Any]:
        return {
            "owner": self.owner,
            "metadata_uri": self.metadata_uri,
            "did": self.identifier,
            "display_name": self.display_name,
            "country_code": self.country_code,
            "email_hash": self.email_hash,
            "linked_accounts": [account.to_native() for account in self.linked_accounts],
            "joined_at": self.joined_at,
        }


@dataclass
class Claim:
    """A claim one account issued about another."""

    id: int
    issuer: str
    receiver: str
    claim_type: str
    proof_hash: bytes
    status: ClaimStatus = ClaimStatus.APPROVED

    @property
    def proof_hash_hex(self) -> str:
        return self.proof_hash.hex()

    @classmethod
    def from_native(cls, data: Optional[Mapping[str, Any]]) -> Optional["Claim"]:
        if not data:
            return None
        try:
            return cls(
                id=int(data["id"]),
                issuer=data["issuer"],
                receiver=data["receiver"],
                claim_type=data["claim_type"],
                proof_hash=data["proof_hash"],
                status=ClaimStatus(data.get("status") or ClaimStatus.APPROVED),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise DecodingError(f"malformed claim: {e}") from e

    def to_native(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "issuer": self.issuer,
            "receiver": self.receiver,
            "claim_type": self.claim_type,
            "proof_hash": self.proof_hash,
            "status": self.status.value,
        }
