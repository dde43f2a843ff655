#!/usr/bin/env python3
"""
Example: plugging a wallet into the SDK with CallbackSigner

A wallet is any function (sync or async) that takes the transaction
payload and returns signed bytes. This example wraps a fake wallet that
asks for confirmation on the terminal and shows how declining surfaces
as SigningError(cancelled=True).

Run this example:
    python examples/wallet_signing.py
"""

import asyncio
import hashlib

from offerhub import CallbackSigner, MockSigner, OfferHubClient, SigningError
from offerhub.codec import Address

ACCOUNT = Address.from_payload(bytes([7]) * 32).value
RECEIVER = Address.from_payload(bytes([8]) * 32).value

# Key store behind the fake wallet; the mock ledger accepts its signatures
KEYS = MockSigner(ACCOUNT)


async def terminal_wallet(payload: bytes, *, network_passphrase: str, account: str):
    """Ask before signing; returning None means the user declined."""
    print(f"[WALLET] {account[:8]}... asked to sign {len(payload)} bytes on '{network_passphrase}'")
    answer = await asyncio.to_thread(input, "[WALLET] Sign? [y/N] ")
    if answer.strip().lower() != "y":
        return None
    return await KEYS.sign(payload, network_passphrase=network_passphrase, account=account)


async def main() -> None:
    client = await OfferHubClient.create(
        mode="mock",
        signer=CallbackSigner(terminal_wallet),
        account=ACCOUNT,
    )

    try:
        claim_id = await client.add_claim(RECEIVER, "skill_endorsement", hashlib.sha256(b"python").digest())
    except SigningError as e:
        if not e.cancelled:
            raise
        print("[CLIENT] You declined; nothing was submitted.")
        print(f"[CLIENT] Claims on ledger: {await client.get_total_claims()}")
        return

    print(f"[CLIENT] Claim #{claim_id} issued")


if __name__ == "__main__":
    asyncio.run(main())
