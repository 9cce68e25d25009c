"""Delegation: the signed grant of authority from a delegator to a delegate.

Delegations form a singly linked chain through ``authority``: a root
delegation carries :data:`ROOT_AUTHORITY`, every other delegation carries
the EIP-712 struct hash of its parent.
"""
from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Optional, Union

from delegation_toolkit.caveats.builder import CaveatBuilder
from delegation_toolkit.caveats.types import Caveat
from delegation_toolkit.delegation.hashing import hash_delegation
from delegation_toolkit.environment import SmartAccountsEnvironment
from delegation_toolkit.errors import (
    AmbiguousCaveatError,
    CaveatNotFoundError,
    CaveatValidationError,
    ConfigurationError,
    UnrestrictedDelegationError,
)
from delegation_toolkit.hexutils import (
    HexLike,
    parse_uint,
    require_address,
    same_address,
    to_bytes,
    to_hex,
)
from delegation_toolkit.scope import ScopeConfig, resolve_caveats

logger = logging.getLogger(__name__)

ROOT_AUTHORITY: bytes = b"\xff" * 32
"""Authority of a delegation that has no parent."""

ANY_BENEFICIARY: str = "0x0000000000000000000000000000000000000a11"
"""Delegate of an open delegation, redeemable by any account."""

CaveatsLike = Union[CaveatBuilder, Sequence[Union[Caveat, Mapping[str, object]]], None]


def _coerce_caveat(value: Caveat | Mapping[str, object]) -> Caveat:
    if isinstance(value, Caveat):
        return value
    return Caveat.from_dict(value)  # type: ignore[arg-type]


def _coerce_salt(value: object) -> int:
    if isinstance(value, (bytes, bytearray)):
        value = int.from_bytes(value, "big") if value else 0
    return parse_uint(value, "salt")


@dataclass(frozen=True)
class Delegation:
    """A delegation of authority, signed or unsigned.

    Addresses are stored in checksummed form; ``authority``, ``signature``
    and caveat byte fields accept hex strings.

    Parameters
    ----------
    delegate:
        Account receiving the authority (:data:`ANY_BENEFICIARY` for an
        open delegation).
    delegator:
        Account granting the authority.
    authority:
        :data:`ROOT_AUTHORITY`, or the struct hash of the parent delegation.
    caveats:
        Ordered caveats restricting the delegation.
    salt:
        Distinguishes otherwise identical delegations.
    signature:
        Delegator signature over the EIP-712 digest; empty until signed.
    """

    delegate: str
    delegator: str
    authority: bytes = ROOT_AUTHORITY
    caveats: tuple[Caveat, ...] = ()
    salt: int = 0
    signature: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "delegate", require_address(self.delegate, "delegate"))
        object.__setattr__(self, "delegator", require_address(self.delegator, "delegator"))
        authority = to_bytes(self.authority, "authority")
        if len(authority) != 32:
            raise CaveatValidationError("Invalid authority: must be a 32 byte hash")
        object.__setattr__(self, "authority", authority)
        object.__setattr__(
            self, "caveats", tuple(_coerce_caveat(caveat) for caveat in self.caveats)
        )
        object.__setattr__(self, "salt", _coerce_salt(self.salt))
        object.__setattr__(self, "signature", to_bytes(self.signature, "signature"))

    @property
    def is_root(self) -> bool:
        return self.authority == ROOT_AUTHORITY

    @property
    def is_open(self) -> bool:
        return same_address(self.delegate, ANY_BENEFICIARY)

    @property
    def is_signed(self) -> bool:
        return bool(self.signature)

    def hash(self) -> bytes:
        """Return the EIP-712 struct hash, which child delegations use as authority."""
        return hash_delegation(self)

    def with_signature(self, signature: HexLike) -> "Delegation":
        """Return a copy carrying *signature*."""
        return dataclasses.replace(self, signature=to_bytes(signature, "signature"))

    def to_dict(self) -> dict[str, object]:
        """Serialize to the JSON representation used by wallets and the CLI."""
        return {
            "delegate": self.delegate,
            "delegator": self.delegator,
            "authority": to_hex(self.authority),
            "caveats": [caveat.to_dict() for caveat in self.caveats],
            "salt": hex(self.salt),
            "signature": to_hex(self.signature),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "Delegation":
        """Reconstruct a Delegation from :meth:`to_dict` output.

        ``salt`` may be an integer, a decimal string or a hex string.

        Raises
        ------
        CaveatValidationError
            If ``delegate`` or ``delegator`` is missing, or a field is invalid.
        """
        missing = sorted({"delegate", "delegator"} - set(data))
        if missing:
            raise CaveatValidationError(f"Invalid delegation: missing fields {missing}")
        return cls(
            delegate=data["delegate"],  # type: ignore[arg-type]
            delegator=data["delegator"],  # type: ignore[arg-type]
            authority=data.get("authority", ROOT_AUTHORITY),  # type: ignore[arg-type]
            caveats=tuple(data.get("caveats", ())),  # type: ignore[arg-type]
            salt=data.get("salt", 0),  # type: ignore[arg-type]
            signature=data.get("signature", b""),  # type: ignore[arg-type]
        )


# ------------------------------------------------------------------
# Authority chain
# ------------------------------------------------------------------


def resolve_authority(parent: Delegation | HexLike | None = None) -> bytes:
    """Return the authority for a delegation derived from *parent*.

    Parameters
    ----------
    parent:
        ``None`` for a root delegation; a 32-byte hash, used unchanged; or
        the parent :class:`Delegation`, whose struct hash is computed.

    Raises
    ------
    CaveatValidationError
        If a hash is given that is not 32 bytes long.
    """
    if parent is None:
        return ROOT_AUTHORITY
    if isinstance(parent, Delegation):
        return hash_delegation(parent)
    authority = to_bytes(parent, "authority")
    if len(authority) != 32:
        raise CaveatValidationError("Invalid authority: must be a 32 byte hash")
    return authority


def _resolve_delegation_caveats(
    caveats: CaveatsLike,
    environment: Optional[SmartAccountsEnvironment],
    scope: ScopeConfig | Mapping[str, object] | None,
    allow_insecure_unrestricted_delegation: bool,
) -> tuple[Caveat, ...]:
    if scope is not None:
        if environment is None:
            raise ConfigurationError("An environment is required to resolve a scope.")
        return tuple(resolve_caveats(environment, scope, caveats))

    if isinstance(caveats, CaveatBuilder):
        if allow_insecure_unrestricted_delegation and len(caveats) == 0:
            return ()
        return tuple(caveats.build())

    resolved = tuple(_coerce_caveat(caveat) for caveat in caveats or ())
    if not resolved and not allow_insecure_unrestricted_delegation:
        raise UnrestrictedDelegationError(
            "No caveats found. If you definitely want to create a delegation without "
            "caveats, set `allow_insecure_unrestricted_delegation` to True."
        )
    return resolved


def create_delegation(
    delegate: str,
    delegator: str,
    caveats: CaveatsLike = None,
    *,
    parent: Delegation | HexLike | None = None,
    salt: int | HexLike = 0,
    environment: Optional[SmartAccountsEnvironment] = None,
    scope: ScopeConfig | Mapping[str, object] | None = None,
    allow_insecure_unrestricted_delegation: bool = False,
) -> Delegation:
    """Assemble an unsigned delegation.

    Parameters
    ----------
    delegate:
        Account receiving the authority.
    delegator:
        Account granting the authority.
    caveats:
        A caveat builder, or a list of caveats. With *scope*, these are
        appended after the scope's caveats.
    parent:
        Parent delegation or its hash; ``None`` creates a root delegation.
    salt:
        Salt distinguishing otherwise identical delegations.
    environment:
        Required when *scope* is given.
    scope:
        Scope configuration (or its dict form) to resolve into caveats.
    allow_insecure_unrestricted_delegation:
        Permit a delegation without caveats.

    Raises
    ------
    UnrestrictedDelegationError
        If no caveats result and the override flag is not set.
    ConfigurationError
        If *scope* is given without an *environment*.
    """
    resolved = _resolve_delegation_caveats(
        caveats, environment, scope, allow_insecure_unrestricted_delegation
    )
    delegation = Delegation(
        delegate=delegate,
        delegator=delegator,
        authority=resolve_authority(parent),
        caveats=resolved,
        salt=salt,  # type: ignore[arg-type]
    )
    logger.debug(
        "Created delegation from %s to %s with %d caveats",
        delegation.delegator,
        delegation.delegate,
        len(delegation.caveats),
    )
    return delegation


def create_open_delegation(
    delegator: str,
    caveats: CaveatsLike = None,
    **kwargs: object,
) -> Delegation:
    """Like :func:`create_delegation` with :data:`ANY_BENEFICIARY` as delegate."""
    return create_delegation(ANY_BENEFICIARY, delegator, caveats, **kwargs)  # type: ignore[arg-type]


# ------------------------------------------------------------------
# Caveat lookup
# ------------------------------------------------------------------


def find_caveat(delegation: Delegation, enforcer: str) -> Caveat:
    """Return the single caveat of *delegation* enforced by *enforcer*.

    Raises
    ------
    CaveatNotFoundError
        If no caveat uses *enforcer*.
    AmbiguousCaveatError
        If more than one caveat uses *enforcer*.
    """
    matches = [c for c in delegation.caveats if same_address(c.enforcer, enforcer)]
    if not matches:
        raise CaveatNotFoundError(enforcer)
    if len(matches) > 1:
        raise AmbiguousCaveatError(enforcer, len(matches))
    return matches[0]
