"""Call data for DelegationManager and enforcer state-changing functions.

Only the call data is produced here; submitting it (directly, through a
smart account, or in a user operation) is up to the caller.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Union

from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector

from delegation_toolkit.delegation.codec import (
    DELEGATION_ABI_TYPE,
    delegation_to_tuple,
    encode_permission_contexts,
)
from delegation_toolkit.delegation.model import Delegation
from delegation_toolkit.errors import CaveatValidationError
from delegation_toolkit.execution import (
    Execution,
    ExecutionMode,
    encode_execution_calldatas,
)
from delegation_toolkit.hexutils import HexLike, require_address, to_bytes

REDEEM_DELEGATIONS_SIGNATURE: str = "redeemDelegations(bytes[],bytes32[],bytes[])"
DISABLE_DELEGATION_SIGNATURE: str = f"disableDelegation({DELEGATION_ABI_TYPE})"
ENABLE_DELEGATION_SIGNATURE: str = f"enableDelegation({DELEGATION_ABI_TYPE})"
INCREMENT_NONCE_SIGNATURE: str = "incrementNonce(address)"

ModeLike = Union[ExecutionMode, HexLike]


def _selector(signature: str) -> bytes:
    return function_signature_to_4byte_selector(signature)


def _mode_bytes(mode: ModeLike) -> bytes:
    raw = mode.as_bytes if isinstance(mode, ExecutionMode) else to_bytes(mode, "mode")
    if len(raw) != 32:
        raise CaveatValidationError("Invalid mode: must be 32 bytes")
    return raw


def encode_redeem_delegations(
    delegations: Sequence[Sequence[Delegation]],
    modes: Sequence[ModeLike],
    executions: Sequence[Sequence[Execution]],
) -> bytes:
    """Call data for ``DelegationManager.redeemDelegations``.

    Parameters
    ----------
    delegations:
        One delegation chain per redemption, leaf delegation first.
    modes:
        One execution mode per redemption.
    executions:
        One execution list per redemption.

    Raises
    ------
    CaveatValidationError
        If the three sequences differ in length.
    """
    if not len(delegations) == len(modes) == len(executions):
        raise CaveatValidationError(
            "delegations, modes and executions must have the same length"
        )
    return _selector(REDEEM_DELEGATIONS_SIGNATURE) + encode(
        ["bytes[]", "bytes32[]", "bytes[]"],
        [
            encode_permission_contexts(delegations),
            [_mode_bytes(mode) for mode in modes],
            encode_execution_calldatas(executions),
        ],
    )


def encode_disable_delegation(delegation: Delegation) -> bytes:
    """Call data for ``DelegationManager.disableDelegation``."""
    return _selector(DISABLE_DELEGATION_SIGNATURE) + encode(
        [DELEGATION_ABI_TYPE], [delegation_to_tuple(delegation)]
    )


def encode_enable_delegation(delegation: Delegation) -> bytes:
    """Call data for ``DelegationManager.enableDelegation``."""
    return _selector(ENABLE_DELEGATION_SIGNATURE) + encode(
        [DELEGATION_ABI_TYPE], [delegation_to_tuple(delegation)]
    )


def encode_increment_nonce(delegation_manager: str) -> bytes:
    """Call data for ``NonceEnforcer.incrementNonce``, revoking outstanding nonces."""
    return _selector(INCREMENT_NONCE_SIGNATURE) + encode(
        ["address"], [require_address(delegation_manager, "delegationManager")]
    )
