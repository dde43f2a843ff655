#!/usr/bin/env python3
"""
Example: profiles, claims and reputation on the in-memory ledger

Walks through the whole OfferHub surface without a network:
- A freelancer and a client register profiles
- The client issues a work claim backed by a delivery proof hash
- Both sides read claims and the freelancer's reputation score

Run this example:
    python examples/mock_claims.py
"""

import asyncio

from offerhub import (
    MockSigner,
    OfferHubClient,
    configure_logging,
    generate_claim_type,
    generate_work_proof_hash,
    hash_email,
)
from offerhub.codec import Address
from offerhub.constants import SECONDS_PER_WEEK

# Test accounts
CLIENT = Address.from_payload(bytes([1]) * 32).value
FREELANCER = Address.from_payload(bytes([2]) * 32).value


async def main() -> None:
    print("=" * 60)
    print("OfferHub SDK - Mock Ledger Example")
    print("=" * 60)
    print()

    configure_logging("WARNING")

    client_side = await OfferHubClient.create(mode="mock", signer=MockSigner(), account=CLIENT)
    freelancer_side = client_side.with_signer(MockSigner(), FREELANCER)

    # ==========================================================================
    # PROFILES
    # ==========================================================================

    await client_side.register_profile("ipfs://QmClientProfile", "Acme Studio", country_code="US")
    await freelancer_side.register_profile(
        "ipfs://QmFreelancerProfile",
        "Ada",
        country_code="GB",
        email_hash=hash_email("ada@example.com"),
        linked_accounts=[("github", "ada")],
    )
    await freelancer_side.link_identifier("did:kilt:4q1w2e3r4t5y")

    profile = await client_side.get_profile(FREELANCER)
    print(f"[PROFILE] {profile.display_name} ({profile.country_code})")
    print(f"[PROFILE] Identifier: {profile.identifier}")
    print(f"[PROFILE] Linked: {[(a.platform, a.handle) for a in profile.linked_accounts]}")
    print()

    # ==========================================================================
    # CLAIMS
    # ==========================================================================

    title, delivered = "Landing page redesign", "2025-01-20"
    proof = generate_work_proof_hash(
        title,
        "Responsive landing page with a new hero section",
        ["https://example.com/delivery"],
        delivered,
    )

    claim_id = await client_side.add_claim(FREELANCER, generate_claim_type(title, delivered), proof)
    await client_side.add_claim(FREELANCER, "job_completed", proof)
    print(f"[CLAIM] Issued claim #{claim_id}")

    for claim in await freelancer_side.get_claims_by_receiver(FREELANCER):
        print(f"[CLAIM] #{claim.id} {claim.claim_type} proof=0x{claim.proof_hash_hex[:16]}...")
    print(f"[CLAIM] Total on ledger: {await client_side.get_total_claims()}")
    print()

    # ==========================================================================
    # REPUTATION
    # ==========================================================================

    print(f"[REPUTATION] Now: {await client_side.get_reputation_score(FREELANCER)}")
    client_side.transport.advance_time(4 * SECONDS_PER_WEEK)
    print(f"[REPUTATION] Four weeks later: {await client_side.get_reputation_score(FREELANCER)}")
    print()

    print("=" * 60)
    print("Example completed successfully!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
