#!/usr/bin/env python3
"""Example: Quickstart

Demonstrates the minimal flow for delegation-toolkit: resolve an ERC-20
transfer scope into caveats, sign the delegation, and build the
``redeemDelegations`` call data a delegate would submit.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install delegation-toolkit
"""
from __future__ import annotations

from eth_account import Account

import delegation_toolkit
from delegation_toolkit import (
    Erc20TransferScope,
    ExecutionMode,
    LocalAccountSigner,
    SmartAccountsEnvironment,
    create_delegation,
    create_execution,
    encode_redeem_delegations,
    sign_delegation,
)

CHAIN_ID = 11155111
TOKEN = "0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238"

DEPLOYMENT = {
    "DelegationManager": "0xdb9B1e94B5b69Df7e401DDbedE43491141047dB3",
    "caveatEnforcers": {
        "ValueLteEnforcer": "0x92Bf12322527cAA612fd31a0e810472BBB106A8F",
        "ERC20TransferAmountEnforcer": "0xf100b0819427117EcF76Ed94B358B1A5b5C6D2Fc",
    },
}


def main() -> None:
    print(f"delegation-toolkit version: {delegation_toolkit.__version__}")

    environment = SmartAccountsEnvironment.from_dict(DEPLOYMENT)
    delegator = LocalAccountSigner(Account.create())
    delegate = Account.create()

    # Step 1: Create a delegation limited to 100 units of TOKEN
    delegation = create_delegation(
        delegate.address,
        delegator.address,
        environment=environment,
        scope=Erc20TransferScope(token_address=TOKEN, max_amount=100),
    )
    print(f"Caveats: {len(delegation.caveats)}")

    # Step 2: Sign it as the delegator
    signature = sign_delegation(
        delegator, delegation, environment.delegation_manager, CHAIN_ID
    )
    signed = delegation.with_signature(signature)
    print(f"Delegation hash: 0x{signed.hash().hex()}")

    # Step 3: Build the redemption call data for one token transfer
    transfer = create_execution(
        TOKEN,
        call_data="0xa9059cbb" + delegate.address[2:].lower().rjust(64, "0") + f"{50:064x}",
    )
    calldata = encode_redeem_delegations(
        [[signed]], [ExecutionMode.SINGLE_DEFAULT], [[transfer]]
    )
    print(f"redeemDelegations call data: {len(calldata)} bytes")

    print("\nQuickstart complete.")


if __name__ == "__main__":
    main()
