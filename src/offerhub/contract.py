"""
OfferHub contract surface.

Wire shapes of the contract's records and the ordered argument list and
return shape of every contract function the client calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

from offerhub.codec import (
    ADDRESS,
    PROOF_HASH,
    STRING,
    SYMBOL,
    U32,
    U64,
    VOID,
    Option,
    Scalar,
    Shape,
    UnitEnum,
    Vec,
    WireTag,
    WireValue,
    encode,
    struct,
)
from offerhub.constants import COUNTRY_CODE_LENGTH, MAX_METADATA_URI_LENGTH
from offerhub.errors import EncodingError
from offerhub.models import ClaimStatus

METADATA_URI = Scalar(WireTag.STRING, max_length=MAX_METADATA_URI_LENGTH)
# Sent as a string; older contract builds store it as a symbol.
COUNTRY_CODE = Scalar(WireTag.STRING, max_length=COUNTRY_CODE_LENGTH, aliases=(WireTag.SYMBOL,))

LINKED_ACCOUNT = struct("LinkedAccount", platform=SYMBOL, handle=STRING)

CLAIM_STATUS = UnitEnum("ClaimStatus", tuple(status.value for status in ClaimStatus))

PROFILE = struct(
    "Profile",
    owner=ADDRESS,
    metadata_uri=STRING,
    did=Option(STRING),
    display_name=STRING,
    country_code=Option(COUNTRY_CODE),
    email_hash=Option(PROOF_HASH),
    linked_accounts=Vec(LINKED_ACCOUNT),
    joined_at=U64,
)

CLAIM = struct(
    "Claim",
    id=U64,
    issuer=ADDRESS,
    receiver=ADDRESS,
    claim_type=STRING,
    proof_hash=PROOF_HASH,
    status=CLAIM_STATUS,
)


@dataclass(frozen=True)
class MethodSpec:
    """
    One contract function.

    Attributes:
        name: Function name on the contract
        params: Ordered ``(name, shape)`` pairs
        returns: Shape of the return value
        read_only: Reads stop after simulation
    """

    name: str
    params: Tuple[Tuple[str, Shape], ...]
    returns: Shape
    read_only: bool = False

    @property
    def param_names(self) -> List[str]:
        return [name for name, _ in self.params]

    def encode_args(self, args: Sequence[Any]) -> List[WireValue]:
        """
        Encode positional arguments in declaration order.

        Raises:
            EncodingError: On an arity mismatch or a value that does not fit
        """
        if len(args) != len(self.params):
            raise EncodingError(
                f"{self.name} takes {len(self.params)} argument(s), got {len(args)}",
                details={"method": self.name},
            )
        return [encode(value, shape, path=name) for (name, shape), value in zip(self.params, args)]


def _method(name: str, returns: Shape, *, read_only: bool = False, **params: Shape) -> MethodSpec:
    return MethodSpec(name, tuple(params.items()), returns, read_only)


METHODS: Dict[str, MethodSpec] = {
    entry.name: entry
    for entry in (
        _method(
            "register_profile",
            VOID,
            owner=ADDRESS,
            metadata_uri=METADATA_URI,
            display_name=STRING,
            country_code=Option(COUNTRY_CODE),
            email_hash=Option(PROOF_HASH),
            linked_accounts=Vec(LINKED_ACCOUNT),
        ),
        _method(
            "update_profile_data",
            VOID,
            owner=ADDRESS,
            display_name=STRING,
            metadata_uri=METADATA_URI,
            country_code=Option(COUNTRY_CODE),
            email_hash=Option(PROOF_HASH),
            linked_accounts=Vec(LINKED_ACCOUNT),
        ),
        _method(
            "add_claim",
            U64,
            issuer=ADDRESS,
            receiver=ADDRESS,
            claim_type=STRING,
            proof_hash=PROOF_HASH,
        ),
        _method("link_identifier", VOID, owner=ADDRESS, identifier=STRING),
        _method("get_profile", Option(PROFILE), read_only=True, account=ADDRESS),
        _method("get_claim", Option(CLAIM), read_only=True, claim_id=U64),
        _method("get_user_claims", Vec(CLAIM), read_only=True, account=ADDRESS),
        _method("get_issuer_claims", Vec(CLAIM), read_only=True, account=ADDRESS),
        _method("get_total_claims", U64, read_only=True),
        _method("get_identifier", Option(STRING), read_only=True, account=ADDRESS),
        _method("get_reputation_score", U32, read_only=True, account=ADDRESS),
    )
}


def get_method(name: str) -> MethodSpec:
    try:
        return METHODS[name]
    except KeyError:
        raise KeyError(f"unknown contract method {name!r}") from None
