#!/usr/bin/env python3
"""
Example: read an account's OfferHub standing over JSON-RPC

Prints the profile, claims and reputation score of an account using a
ledger gateway configured through environment variables (or a .env file).

Usage:
    python examples/rpc_status.py <account address>

Environment Variables:
    OFFERHUB_CONTRACT_ID: Address of the deployed contract (required)
    OFFERHUB_NETWORK: futurenet, testnet or mainnet (default: testnet)
    OFFERHUB_RPC_URL: Gateway URL (defaults to the network's public endpoint)
"""

import asyncio
import sys

from offerhub import (
    CancellationToken,
    OfferHubClient,
    OfferHubConfig,
    OfferHubError,
    configure_logging,
)


async def main(account: str) -> int:
    configure_logging("INFO")
    config = OfferHubConfig.from_env()
    print(f"Network:  {config.network.value}")
    print(f"RPC:      {config.effective_rpc_url}")
    print(f"Contract: {config.contract_id}")
    print()

    # Give up on the whole report after 30 seconds
    cancel = CancellationToken(timeout=30)

    async with await OfferHubClient.create("rpc", config) as client:
        try:
            profile = await client.get_profile(account, cancel=cancel)
            claims = await client.get_claims_by_receiver(account, cancel=cancel)
            score = await client.get_reputation_score(account, cancel=cancel)
        except OfferHubError as e:
            print(f"[ERROR] {e}")
            return 1

    if profile is None:
        print(f"{account} has no profile")
    else:
        print(f"Profile:  {profile.display_name} ({profile.metadata_uri})")
        print(f"Joined:   {profile.joined_at}")
        if profile.identifier:
            print(f"DID:      {profile.identifier}")

    print(f"Claims:   {len(claims)}")
    for claim in claims:
        print(f"  #{claim.id} {claim.claim_type} from {claim.issuer[:8]}...")
    print(f"Score:    {score}")
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(2)
    sys.exit(asyncio.run(main(sys.argv[1])))
