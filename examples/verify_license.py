#!/usr/bin/env python3
"""
Example: Verify a license without a signing key

Read-only client: no private key is needed to check a license.

Usage:
    python examples/verify_license.py <contract-address> <token-id>

Environment Variables:
    LICENSECHAIN_NETWORK: Network name (default: sepolia)
    LICENSECHAIN_RPC_URL: Optional RPC endpoint override
"""

import asyncio
import os
import sys

from dotenv import load_dotenv

from licensechain import LicenseChain, LicenseChainError

load_dotenv()


async def main(address: str, token_id: int) -> None:
    chain = LicenseChain.from_env(network=os.getenv("LICENSECHAIN_NETWORK", "sepolia"))
    contract = chain.get_contract(address)

    try:
        verification = await contract.get_license_verification(token_id)
    except LicenseChainError as e:
        print(f"Lookup failed: {e}")
        sys.exit(1)

    if verification.is_valid:
        print(f"License {token_id} is valid")
        print(f"Features: {', '.join(verification.features) or '-'}")
        if verification.expires_at is not None:
            print(f"Expires:  {verification.expires_at}")
    else:
        print(f"License {token_id} is NOT valid: {verification.reason}")
        sys.exit(2)


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(1)
    asyncio.run(main(sys.argv[1], int(sys.argv[2])))
