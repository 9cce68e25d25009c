"""ABI encoding of delegation chains and permission contexts.

A delegation chain is encoded as the ABI tuple array::

    (address delegate, address delegator, bytes32 authority,
     (address enforcer, bytes terms, bytes args)[] caveats,
     uint256 salt, bytes signature)[]

which is the ``bytes`` permission context the DelegationManager accepts in
``redeemDelegations``. Chains are ordered leaf first: the delegation being
redeemed comes before the delegation it was derived from.
"""
from __future__ import annotations

from collections.abc import Sequence

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError

from delegation_toolkit.caveats.types import Caveat
from delegation_toolkit.delegation.model import Delegation
from delegation_toolkit.errors import DelegationDecodeError
from delegation_toolkit.hexutils import HexLike, to_bytes

CAVEAT_ABI_TYPE: str = "(address,bytes,bytes)"
DELEGATION_ABI_TYPE: str = f"(address,address,bytes32,{CAVEAT_ABI_TYPE}[],uint256,bytes)"
DELEGATION_ARRAY_ABI_TYPE: str = f"{DELEGATION_ABI_TYPE}[]"

DelegationTuple = tuple[str, str, bytes, list[tuple[str, bytes, bytes]], int, bytes]


def delegation_to_tuple(delegation: Delegation) -> DelegationTuple:
    """Return *delegation* as the tuple matching :data:`DELEGATION_ABI_TYPE`."""
    return (
        delegation.delegate,
        delegation.delegator,
        delegation.authority,
        [(c.enforcer, c.terms, c.args) for c in delegation.caveats],
        delegation.salt,
        delegation.signature,
    )


def delegation_from_tuple(value: Sequence[object]) -> Delegation:
    delegate, delegator, authority, caveats, salt, signature = value
    return Delegation(
        delegate=delegate,  # type: ignore[arg-type]
        delegator=delegator,  # type: ignore[arg-type]
        authority=authority,  # type: ignore[arg-type]
        caveats=tuple(
            Caveat(enforcer=enforcer, terms=terms, args=args)
            for enforcer, terms, args in caveats  # type: ignore[union-attr]
        ),
        salt=salt,  # type: ignore[arg-type]
        signature=signature,  # type: ignore[arg-type]
    )


# ------------------------------------------------------------------
# Delegation chains
# ------------------------------------------------------------------


def encode_delegations(delegations: Sequence[Delegation]) -> bytes:
    """ABI encode a delegation chain as a permission context."""
    return encode(
        [DELEGATION_ARRAY_ABI_TYPE], [[delegation_to_tuple(d) for d in delegations]]
    )


def decode_delegations(encoded: HexLike) -> list[Delegation]:
    """Decode a permission context produced by :func:`encode_delegations`.

    Addresses come back checksummed.

    Raises
    ------
    DelegationDecodeError
        If *encoded* is not a valid ABI encoded delegation array.
    """
    try:
        (items,) = decode([DELEGATION_ARRAY_ABI_TYPE], to_bytes(encoded, "permission context"))
    except (DecodingError, ValueError, OverflowError) as exc:
        raise DelegationDecodeError(f"Could not decode delegations: {exc}") from exc
    return [delegation_from_tuple(item) for item in items]


def encode_delegation(delegation: Delegation) -> bytes:
    """ABI encode a single delegation tuple."""
    return encode([DELEGATION_ABI_TYPE], [delegation_to_tuple(delegation)])


# ------------------------------------------------------------------
# Permission contexts
# ------------------------------------------------------------------


def encode_permission_contexts(contexts: Sequence[Sequence[Delegation]]) -> list[bytes]:
    """Encode each delegation chain in *contexts* separately."""
    return [encode_delegations(chain) for chain in contexts]


def decode_permission_contexts(encoded: Sequence[HexLike]) -> list[list[Delegation]]:
    """Inverse of :func:`encode_permission_contexts`."""
    return [decode_delegations(context) for context in encoded]
