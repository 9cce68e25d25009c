"""Addresses and keys shared by the test modules."""
from __future__ import annotations

from delegation_toolkit.caveats.types import ENFORCER_NAMES
from delegation_toolkit.environment import SmartAccountsEnvironment

CHAIN_ID = 11155111

# Digit-only addresses are their own checksummed form.
DELEGATION_MANAGER = "0x" + "1" * 40
TOKEN = "0x" + "2" * 40
RECIPIENT = "0x" + "3" * 40
TARGET = "0x" + "4" * 40
DELEGATE = "0x" + "5" * 40
DELEGATOR = "0x" + "6" * 40

PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"

ENFORCER_ADDRESSES: dict[str, str] = {
    name: "0x" + str(index + 1).rjust(40, "0")
    for index, name in enumerate(ENFORCER_NAMES.values())
}


def enforcer_address(name: str) -> str:
    return ENFORCER_ADDRESSES[name]


def build_environment() -> SmartAccountsEnvironment:
    return SmartAccountsEnvironment(
        delegation_manager=DELEGATION_MANAGER,
        caveat_enforcers=ENFORCER_ADDRESSES,
        chain_id=CHAIN_ID,
    )


def environment_file_data() -> dict[str, object]:
    return {
        "environments": [
            {
                "chainId": CHAIN_ID,
                "version": "1.3.0",
                "DelegationManager": DELEGATION_MANAGER,
                "caveatEnforcers": ENFORCER_ADDRESSES,
            }
        ]
    }
