"""Signing delegations with EIP-712 typed data.

Signing is delegated to any object implementing :class:`TypedDataSigner`;
:class:`LocalAccountSigner` adapts an ``eth_account`` local account. A
delegation with no caveats is refused unless the caller opts in, since it
grants the delegate the delegator's full authority.
"""
from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from eth_account import Account
from eth_account.messages import SignableMessage, encode_typed_data
from eth_account.signers.local import LocalAccount

from delegation_toolkit.delegation.hashing import (
    DELEGATION_MANAGER_DOMAIN_NAME,
    DELEGATION_MANAGER_DOMAIN_VERSION,
    EIP712_DOMAIN_FIELDS,
    SIGNABLE_DELEGATION_TYPED_DATA,
    delegation_typed_data,
    domain_separator,
    hash_delegation,
)
from delegation_toolkit.delegation.model import Delegation
from delegation_toolkit.errors import UnrestrictedDelegationError
from delegation_toolkit.hexutils import same_address

logger = logging.getLogger(__name__)


@runtime_checkable
class TypedDataSigner(Protocol):
    """Anything that can produce an EIP-712 signature."""

    def sign_typed_data(
        self,
        domain: dict[str, Any],
        types: dict[str, list[dict[str, str]]],
        primary_type: str,
        message: dict[str, Any],
    ) -> bytes:
        ...


class LocalAccountSigner:
    """:class:`TypedDataSigner` backed by an ``eth_account`` local account.

    Parameters
    ----------
    account:
        The account whose key signs.
    """

    def __init__(self, account: LocalAccount) -> None:
        self._account = account

    @classmethod
    def from_key(cls, private_key: str | bytes) -> "LocalAccountSigner":
        return cls(Account.from_key(private_key))

    @property
    def address(self) -> str:
        return self._account.address

    def sign_typed_data(
        self,
        domain: dict[str, Any],
        types: dict[str, list[dict[str, str]]],
        primary_type: str,
        message: dict[str, Any],
    ) -> bytes:
        full_message = {
            "types": {"EIP712Domain": EIP712_DOMAIN_FIELDS, **types},
            "primaryType": primary_type,
            "domain": domain,
            "message": message,
        }
        signable = encode_typed_data(full_message=full_message)
        return bytes(self._account.sign_message(signable).signature)


def sign_delegation(
    signer: TypedDataSigner,
    delegation: Delegation,
    delegation_manager: str,
    chain_id: int,
    name: str = DELEGATION_MANAGER_DOMAIN_NAME,
    version: str = DELEGATION_MANAGER_DOMAIN_VERSION,
    allow_insecure_unrestricted_delegation: bool = False,
) -> bytes:
    """Sign *delegation* and return the signature bytes.

    Any existing signature on *delegation* is ignored; it is not part of the
    signed struct. Use :meth:`Delegation.with_signature` to attach the result.

    Parameters
    ----------
    signer:
        Signing capability of the delegator.
    delegation:
        The delegation to sign.
    delegation_manager:
        Verifying contract of the EIP-712 domain.
    chain_id:
        Chain id of the EIP-712 domain.
    name, version:
        EIP-712 domain name and version of the DelegationManager.
    allow_insecure_unrestricted_delegation:
        Permit signing a delegation without caveats.

    Raises
    ------
    UnrestrictedDelegationError
        If the delegation has no caveats and the override flag is not set.
    """
    if not delegation.caveats and not allow_insecure_unrestricted_delegation:
        raise UnrestrictedDelegationError(
            "No caveats found. If you definitely want to sign a delegation without "
            "caveats, set `allow_insecure_unrestricted_delegation` to True."
        )

    typed_data = delegation_typed_data(delegation, chain_id, delegation_manager, name, version)
    signature = signer.sign_typed_data(
        typed_data["domain"],
        SIGNABLE_DELEGATION_TYPED_DATA,
        typed_data["primaryType"],
        typed_data["message"],
    )
    logger.info(
        "Signed delegation 0x%s from %s on chain %d",
        hash_delegation(delegation).hex(),
        delegation.delegator,
        chain_id,
    )
    return bytes(signature)


def recover_delegation_signer(
    delegation: Delegation,
    delegation_manager: str,
    chain_id: int,
    name: str = DELEGATION_MANAGER_DOMAIN_NAME,
    version: str = DELEGATION_MANAGER_DOMAIN_VERSION,
) -> str:
    """Recover the address that produced ``delegation.signature``.

    Only meaningful for signatures made by an externally owned account;
    smart account signatures are validated on-chain through ERC-1271.
    """
    signable = SignableMessage(
        version=b"\x01",
        header=domain_separator(chain_id, delegation_manager, name, version),
        body=hash_delegation(delegation),
    )
    return Account.recover_message(signable, signature=delegation.signature)


def is_signed_by_delegator(
    delegation: Delegation,
    delegation_manager: str,
    chain_id: int,
    name: str = DELEGATION_MANAGER_DOMAIN_NAME,
    version: str = DELEGATION_MANAGER_DOMAIN_VERSION,
) -> bool:
    """Return True when the signature recovers to ``delegation.delegator``."""
    if not delegation.signature:
        return False
    signer = recover_delegation_signer(delegation, delegation_manager, chain_id, name, version)
    return same_address(signer, delegation.delegator)
