"""Delegation model, EIP-712 hashing, ABI codec and signing."""
from __future__ import annotations

from delegation_toolkit.delegation.codec import (
    DELEGATION_ABI_TYPE,
    DELEGATION_ARRAY_ABI_TYPE,
    decode_delegations,
    decode_permission_contexts,
    encode_delegation,
    encode_delegations,
    encode_permission_contexts,
)
from delegation_toolkit.delegation.hashing import (
    CAVEAT_TYPEHASH,
    DELEGATION_TYPEHASH,
    SIGNABLE_DELEGATION_TYPED_DATA,
    delegation_digest,
    delegation_typed_data,
    domain_separator,
    hash_caveat,
    hash_delegation,
)
from delegation_toolkit.delegation.model import (
    ANY_BENEFICIARY,
    ROOT_AUTHORITY,
    Delegation,
    create_delegation,
    create_open_delegation,
    find_caveat,
    resolve_authority,
)
from delegation_toolkit.delegation.signing import (
    LocalAccountSigner,
    TypedDataSigner,
    is_signed_by_delegator,
    recover_delegation_signer,
    sign_delegation,
)

__all__ = [
    "ANY_BENEFICIARY",
    "CAVEAT_TYPEHASH",
    "DELEGATION_ABI_TYPE",
    "DELEGATION_ARRAY_ABI_TYPE",
    "DELEGATION_TYPEHASH",
    "Delegation",
    "LocalAccountSigner",
    "ROOT_AUTHORITY",
    "SIGNABLE_DELEGATION_TYPED_DATA",
    "TypedDataSigner",
    "create_delegation",
    "create_open_delegation",
    "decode_delegations",
    "decode_permission_contexts",
    "delegation_digest",
    "delegation_typed_data",
    "domain_separator",
    "encode_delegation",
    "encode_delegations",
    "encode_permission_contexts",
    "find_caveat",
    "hash_caveat",
    "hash_delegation",
    "is_signed_by_delegator",
    "recover_delegation_signer",
    "resolve_authority",
    "sign_delegation",
]
