#!/usr/bin/env python3
"""Example: Custom caveats and environment files

Demonstrates loading deployments from an environment file, registering a
custom caveat encoder on a builder, and resolving a JSON scope with extra
caveats appended.

Usage:
    python examples/03_custom_caveats.py

Requirements:
    pip install delegation-toolkit
"""
from __future__ import annotations

import json
import tempfile
from pathlib import Path

from delegation_toolkit import (
    Caveat,
    EnvironmentRegistry,
    SmartAccountsEnvironment,
    create_caveat_builder,
    resolve_caveats,
)

CHAIN_ID = 11155111
GUARD = "0x000000000000000000000000000000000000dEaD"

ENVIRONMENTS = {
    "environments": [
        {
            "chainId": CHAIN_ID,
            "version": "1.3.0",
            "DelegationManager": "0xdb9B1e94B5b69Df7e401DDbedE43491141047dB3",
            "caveatEnforcers": {
                "ExactCalldataEnforcer": "0x99F2e9bF15ce5eC84685604836F71aB835DBBdED",
                "NativeTokenTransferAmountEnforcer": "0xF71af580b9c3078fbc2BBF16FbB8EEd82b330320",
                "LimitedCallsEnforcer": "0x04658B29F6b82ed55274221a06Fc97D318E25416",
            },
        }
    ]
}


def guard_caveat(environment: SmartAccountsEnvironment, *, code: int) -> Caveat:
    """A caveat enforced by a locally deployed guard contract."""
    return Caveat(enforcer=GUARD, terms=code.to_bytes(32, "big"))


def main() -> None:
    with tempfile.TemporaryDirectory() as directory:
        path = Path(directory) / "environments.json"
        path.write_text(json.dumps(ENVIRONMENTS), encoding="utf-8")
        environment = EnvironmentRegistry.from_file(path).get(CHAIN_ID)

    # A builder extended with the custom caveat type
    builder = create_caveat_builder(environment).extend("guard", guard_caveat)
    builder.add_caveat("guard", code=7).add_caveat("limitedCalls", limit=5)
    print(f"Custom builder caveats: {[c.enforcer for c in builder.build()]}")

    # A JSON scope with an extra caveat appended after the scope's caveats
    scope = {"type": "nativeToken", "maxAmount": 10**18}
    caveats = resolve_caveats(environment, scope, [{"type": "limitedCalls", "limit": 1}])
    for caveat in caveats:
        print(f"{caveat.enforcer} terms=0x{caveat.terms.hex()}")


if __name__ == "__main__":
    main()
