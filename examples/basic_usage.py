#!/usr/bin/env python3
"""
Example: Deploy a license contract and mint a license

Deploys a standard license contract, mints one license to a customer and
reads it back.

Usage:
    python examples/basic_usage.py

Environment Variables:
    LICENSECHAIN_NETWORK: Network name (default: sepolia)
    LICENSECHAIN_PRIVATE_KEY: Deployer/minter private key
    LICENSECHAIN_RPC_URL: Optional RPC endpoint override
    LICENSE_BYTECODE_FILE: File holding the compiled contract bytecode (0x...)
    CUSTOMER_ADDRESS: Recipient of the license
"""

import asyncio
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from licensechain import LicenseChain, LicenseChainError, configure_logging

# Load .env file
load_dotenv()

BYTECODE_FILE = os.getenv("LICENSE_BYTECODE_FILE", "")
CUSTOMER_ADDRESS = os.getenv("CUSTOMER_ADDRESS", "")


async def main() -> None:
    print("LicenseChain - Deploy and Mint\n")

    if not os.getenv("LICENSECHAIN_PRIVATE_KEY") or not BYTECODE_FILE or not CUSTOMER_ADDRESS:
        print("Missing environment variables")
        print("Set: LICENSECHAIN_PRIVATE_KEY, LICENSE_BYTECODE_FILE and CUSTOMER_ADDRESS")
        sys.exit(1)

    configure_logging()

    chain = LicenseChain.from_env(network=os.getenv("LICENSECHAIN_NETWORK", "sepolia"))
    chain_id = await chain.verify_network()
    print(f"Network: {chain.network.name} (chain {chain_id})")
    print(f"Signer:  {chain.address}")
    print(f"Balance: {await chain.get_balance()} ETH\n")

    # ==========================================================================
    # Deploy
    # ==========================================================================

    contract = await chain.deploy_license_contract(
        name="My Software License",
        symbol="MSL",
        base_uri="https://api.example.com/licenses/",
        bytecode=Path(BYTECODE_FILE).read_text().strip(),
        max_supply=1000,
    )
    print(f"Contract: {contract.address}")
    print(f"Explorer: {chain.network.explorer_address_url(contract.address)}\n")

    # ==========================================================================
    # Mint
    # ==========================================================================

    metadata = {
        "software": "My App",
        "version": "1.0.0",
        "features": ["basic", "premium"],
    }

    estimate = await contract.estimate_gas_mint_license(CUSTOMER_ADDRESS, 1, metadata)
    print(f"Estimated mint cost: {estimate.total_cost_ether} ETH")

    try:
        outcome = await contract.mint_license(CUSTOMER_ADDRESS, 1, metadata)
    except LicenseChainError as e:
        print(f"Mint failed: {e}")
        if e.tx_hash:
            print(f"Check the transaction: {chain.network.explorer_tx_url(e.tx_hash)}")
        sys.exit(1)

    print(f"Minted in block {outcome.block_number} (gas used: {outcome.gas_used})\n")

    # ==========================================================================
    # Read back
    # ==========================================================================

    info = await contract.get_license_info(1)
    print(f"Owner:    {info.owner}")
    print(f"Software: {info.metadata.software} {info.metadata.version}")
    print(f"Features: {', '.join(info.metadata.features)}")
    print(f"Valid:    {info.is_valid}")


if __name__ == "__main__":
    asyncio.run(main())
