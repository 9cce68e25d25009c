#!/usr/bin/env python3
"""Example: Delegation chains

Demonstrates redelegation: a root delegation from Alice to Bob, and a
narrower delegation from Bob to Carol whose authority is the hash of the
root. The chain is encoded leaf first as a permission context, decoded
again, and each signature is checked.

Usage:
    python examples/02_delegation_chain.py

Requirements:
    pip install delegation-toolkit
"""
from __future__ import annotations

from eth_account import Account

from delegation_toolkit import (
    LocalAccountSigner,
    SmartAccountsEnvironment,
    create_caveat_builder,
    create_delegation,
    decode_delegations,
    encode_delegations,
    find_caveat,
    sign_delegation,
)
from delegation_toolkit.delegation import is_signed_by_delegator

CHAIN_ID = 11155111

DEPLOYMENT = {
    "DelegationManager": "0xdb9B1e94B5b69Df7e401DDbedE43491141047dB3",
    "caveatEnforcers": {
        "LimitedCallsEnforcer": "0x04658B29F6b82ed55274221a06Fc97D318E25416",
        "TimestampEnforcer": "0x1046bb45C8d673d4ea75321280DB34899413c069",
    },
}


def main() -> None:
    environment = SmartAccountsEnvironment.from_dict(DEPLOYMENT)
    manager = environment.delegation_manager
    alice, bob = LocalAccountSigner(Account.create()), LocalAccountSigner(Account.create())
    carol = Account.create()

    # Root: Alice lets Bob act ten times
    root_caveats = create_caveat_builder(environment).add_caveat("limitedCalls", limit=10)
    root = create_delegation(bob.address, alice.address, root_caveats)
    root = root.with_signature(sign_delegation(alice, root, manager, CHAIN_ID))

    # Child: Bob passes two of those calls to Carol before a deadline
    child_caveats = (
        create_caveat_builder(environment)
        .add_caveat("limitedCalls", limit=2)
        .add_caveat("timestamp", after_threshold=0, before_threshold=4_102_444_800)
    )
    child = create_delegation(carol.address, bob.address, child_caveats, parent=root)
    child = child.with_signature(sign_delegation(bob, child, manager, CHAIN_ID))
    print(f"Child authority is root hash: {child.authority == root.hash()}")

    # Encode leaf first, then decode and verify
    context = encode_delegations([child, root])
    for delegation in decode_delegations(context):
        valid = is_signed_by_delegator(delegation, manager, CHAIN_ID)
        limit = find_caveat(delegation, environment.enforcer("LimitedCallsEnforcer"))
        print(
            f"{delegation.delegator} -> {delegation.delegate}: "
            f"signature valid={valid}, limit={int.from_bytes(limit.terms, 'big')}"
        )


if __name__ == "__main__":
    main()
