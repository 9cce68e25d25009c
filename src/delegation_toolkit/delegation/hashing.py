"""EIP-712 hashing of delegations.

The struct hash of a delegation doubles as its identity: a child
delegation's ``authority`` is the struct hash of its parent. Caveat
``args`` and the delegation ``signature`` are never part of the hash.

Typed data layout::

    Delegation(address delegate,address delegator,bytes32 authority,Caveat[] caveats,uint256 salt)
    Caveat(address enforcer,bytes terms)

signed under the domain ``EIP712Domain(string name,string version,uint256
chainId,address verifyingContract)`` with the DelegationManager as the
verifying contract.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from eth_abi import encode
from eth_utils import keccak, to_checksum_address

from delegation_toolkit.caveats.types import Caveat
from delegation_toolkit.hexutils import to_hex

if TYPE_CHECKING:
    from delegation_toolkit.delegation.model import Delegation

DELEGATION_MANAGER_DOMAIN_NAME: str = "DelegationManager"
DELEGATION_MANAGER_DOMAIN_VERSION: str = "1"

CAVEAT_TYPE: str = "Caveat(address enforcer,bytes terms)"
DELEGATION_TYPE: str = (
    "Delegation(address delegate,address delegator,bytes32 authority,"
    "Caveat[] caveats,uint256 salt)" + CAVEAT_TYPE
)
EIP712_DOMAIN_TYPE: str = (
    "EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
)

CAVEAT_TYPEHASH: bytes = keccak(text=CAVEAT_TYPE)
DELEGATION_TYPEHASH: bytes = keccak(text=DELEGATION_TYPE)
EIP712_DOMAIN_TYPEHASH: bytes = keccak(text=EIP712_DOMAIN_TYPE)

EIP712_DOMAIN_FIELDS: list[dict[str, str]] = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

SIGNABLE_DELEGATION_TYPED_DATA: dict[str, list[dict[str, str]]] = {
    "Caveat": [
        {"name": "enforcer", "type": "address"},
        {"name": "terms", "type": "bytes"},
    ],
    "Delegation": [
        {"name": "delegate", "type": "address"},
        {"name": "delegator", "type": "address"},
        {"name": "authority", "type": "bytes32"},
        {"name": "caveats", "type": "Caveat[]"},
        {"name": "salt", "type": "uint256"},
    ],
}


# ------------------------------------------------------------------
# Struct hashes
# ------------------------------------------------------------------


def hash_caveat(caveat: Caveat) -> bytes:
    """Return ``keccak256(abi.encode(CAVEAT_TYPEHASH, enforcer, keccak256(terms)))``."""
    return keccak(
        encode(
            ["bytes32", "address", "bytes32"],
            [CAVEAT_TYPEHASH, caveat.enforcer, keccak(caveat.terms)],
        )
    )


def hash_caveats(caveats: Sequence[Caveat]) -> bytes:
    """Hash a caveat array as EIP-712 does: keccak of the concatenated struct hashes."""
    return keccak(b"".join(hash_caveat(caveat) for caveat in caveats))


def hash_delegation(delegation: "Delegation") -> bytes:
    """Return the EIP-712 struct hash of *delegation*.

    This is the value a child delegation uses as its ``authority``.
    """
    return keccak(
        encode(
            ["bytes32", "address", "address", "bytes32", "bytes32", "uint256"],
            [
                DELEGATION_TYPEHASH,
                delegation.delegate,
                delegation.delegator,
                delegation.authority,
                hash_caveats(delegation.caveats),
                delegation.salt,
            ],
        )
    )


# ------------------------------------------------------------------
# Domain and digest
# ------------------------------------------------------------------


def domain_separator(
    chain_id: int,
    verifying_contract: str,
    name: str = DELEGATION_MANAGER_DOMAIN_NAME,
    version: str = DELEGATION_MANAGER_DOMAIN_VERSION,
) -> bytes:
    """Return the EIP-712 domain separator of a DelegationManager deployment."""
    return keccak(
        encode(
            ["bytes32", "bytes32", "bytes32", "uint256", "address"],
            [
                EIP712_DOMAIN_TYPEHASH,
                keccak(text=name),
                keccak(text=version),
                chain_id,
                to_checksum_address(verifying_contract),
            ],
        )
    )


def delegation_digest(
    delegation: "Delegation",
    chain_id: int,
    delegation_manager: str,
    name: str = DELEGATION_MANAGER_DOMAIN_NAME,
    version: str = DELEGATION_MANAGER_DOMAIN_VERSION,
) -> bytes:
    """Return ``keccak256(0x1901 ‖ domainSeparator ‖ structHash)``, the signed digest."""
    return keccak(
        b"\x19\x01"
        + domain_separator(chain_id, delegation_manager, name, version)
        + hash_delegation(delegation)
    )


def delegation_typed_data(
    delegation: "Delegation",
    chain_id: int,
    delegation_manager: str,
    name: str = DELEGATION_MANAGER_DOMAIN_NAME,
    version: str = DELEGATION_MANAGER_DOMAIN_VERSION,
) -> dict[str, Any]:
    """Return the full EIP-712 typed data message for *delegation*.

    The result is suitable for ``eth_signTypedData_v4`` and for
    ``eth_account.messages.encode_typed_data(full_message=...)``.
    """
    return {
        "types": {"EIP712Domain": EIP712_DOMAIN_FIELDS, **SIGNABLE_DELEGATION_TYPED_DATA},
        "primaryType": "Delegation",
        "domain": {
            "name": name,
            "version": version,
            "chainId": chain_id,
            "verifyingContract": to_checksum_address(delegation_manager),
        },
        "message": {
            "delegate": delegation.delegate,
            "delegator": delegation.delegator,
            "authority": to_hex(delegation.authority),
            "caveats": [
                {"enforcer": caveat.enforcer, "terms": to_hex(caveat.terms)}
                for caveat in delegation.caveats
            ],
            "salt": delegation.salt,
        },
    }
