"""Read-only queries against deployed caveat enforcers.

:class:`CaveatEnforcerClient` asks enforcer contracts how much of a
delegation's allowance remains, and reads their per-delegation counters.
Contract access goes through a :class:`ContractReader`; use
:class:`Web3ContractReader` for a live node, or any object with the same
two methods in tests.

Each allowance query accepts either a ``delegation`` (the caveat is found
by enforcer address and its hash computed) or an explicit
``delegation_hash`` and ``terms``.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Optional, Protocol, runtime_checkable

from web3 import Web3

from delegation_toolkit.caveats.terms import decode_native_token_streaming_terms
from delegation_toolkit.caveats.types import CaveatType
from delegation_toolkit.delegation.hashing import hash_delegation
from delegation_toolkit.delegation.model import Delegation, find_caveat
from delegation_toolkit.environment import SmartAccountsEnvironment
from delegation_toolkit.errors import ConfigurationError
from delegation_toolkit.hexutils import HexLike, require_address, to_bytes

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Results
# ------------------------------------------------------------------


@dataclass(frozen=True)
class PeriodTransferResult:
    """Allowance snapshot of a periodic transfer enforcer.

    Parameters
    ----------
    available_amount:
        Amount still transferable in the current period.
    is_new_period:
        True when the current period has not been used yet.
    current_period:
        Index of the current period, starting at 1.
    """

    available_amount: int
    is_new_period: bool
    current_period: int


@dataclass(frozen=True)
class StreamingResult:
    """Allowance snapshot of a streaming enforcer."""

    available_amount: int


def streaming_available_amount(
    initial_amount: int,
    max_amount: int,
    amount_per_second: int,
    start_time: int,
    spent: int,
    current_timestamp: int,
) -> int:
    """Amount a stream has unlocked and not yet spent at *current_timestamp*.

    Nothing is available before *start_time*. Afterwards the unlocked amount
    is ``initial_amount + amount_per_second * elapsed``, capped at
    *max_amount*, minus what was already spent (never below zero).
    """
    if current_timestamp < start_time:
        return 0
    unlocked = initial_amount + amount_per_second * (current_timestamp - start_time)
    unlocked = min(unlocked, max_amount)
    return max(unlocked - spent, 0)


# ------------------------------------------------------------------
# ABI fragments
# ------------------------------------------------------------------


def _fn(name: str, inputs: Sequence[str], outputs: Sequence[str]) -> dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "stateMutability": "view",
        "inputs": [{"name": f"arg{i}", "type": t} for i, t in enumerate(inputs)],
        "outputs": [{"name": f"out{i}", "type": t} for i, t in enumerate(outputs)],
    }


PERIOD_TRANSFER_ABI: list[dict[str, Any]] = [
    _fn("getAvailableAmount", ["bytes32", "address", "bytes"], ["uint256", "bool", "uint256"]),
]
MULTI_TOKEN_PERIOD_ABI: list[dict[str, Any]] = [
    _fn(
        "getAvailableAmount",
        ["bytes32", "address", "bytes", "bytes"],
        ["uint256", "bool", "uint256"],
    ),
]
ERC20_STREAMING_ABI: list[dict[str, Any]] = [
    _fn("getAvailableAmount", ["address", "bytes32"], ["uint256"]),
]
NATIVE_TOKEN_STREAMING_ABI: list[dict[str, Any]] = [
    _fn(
        "streamingAllowances",
        ["address", "bytes32"],
        ["uint256", "uint256", "uint256", "uint256", "uint256"],
    ),
]
SPENT_MAP_ABI: list[dict[str, Any]] = [
    _fn("spentMap", ["address", "bytes32"], ["uint256"]),
]
LIMITED_CALLS_ABI: list[dict[str, Any]] = [
    _fn("callCounts", ["address", "bytes32"], ["uint256"]),
]
NONCE_ABI: list[dict[str, Any]] = [
    _fn("currentNonce", ["address", "address"], ["uint256"]),
]
ID_ABI: list[dict[str, Any]] = [
    _fn("getIsUsed", ["address", "address", "uint256"], ["bool"]),
]
DELEGATION_MANAGER_ABI: list[dict[str, Any]] = [
    _fn("disabledDelegations", ["bytes32"], ["bool"]),
]


# ------------------------------------------------------------------
# Readers
# ------------------------------------------------------------------


@runtime_checkable
class ContractReader(Protocol):
    """Minimal read access to a chain."""

    def read(
        self,
        address: str,
        abi: list[dict[str, Any]],
        function_name: str,
        args: Sequence[Any],
    ) -> Any:
        ...

    def block_timestamp(self) -> int:
        ...


class Web3ContractReader:
    """:class:`ContractReader` backed by a ``web3.Web3`` instance.

    Parameters
    ----------
    w3:
        Connected Web3 instance.
    """

    def __init__(self, w3: Web3) -> None:
        self._w3 = w3

    @classmethod
    def from_rpc_url(cls, rpc_url: str) -> "Web3ContractReader":
        return cls(Web3(Web3.HTTPProvider(rpc_url)))

    def read(
        self,
        address: str,
        abi: list[dict[str, Any]],
        function_name: str,
        args: Sequence[Any],
    ) -> Any:
        contract = self._w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)
        return contract.functions[function_name](*args).call()

    def block_timestamp(self) -> int:
        return int(self._w3.eth.get_block("latest")["timestamp"])


# ------------------------------------------------------------------
# Client
# ------------------------------------------------------------------


@dataclass(frozen=True)
class _Target:
    enforcer: str
    delegation_manager: str
    delegation_hash: bytes
    terms: bytes
    args: bytes


class CaveatEnforcerClient:
    """Queries caveat enforcer state for delegations on one chain.

    Parameters
    ----------
    environment:
        Supplies enforcer and DelegationManager addresses by default.
    reader:
        Chain access.

    Example
    -------
    ::

        client = CaveatEnforcerClient(environment, Web3ContractReader(w3))
        result = client.get_erc20_period_transfer_available_amount(delegation=signed)
        print(result.available_amount)
    """

    def __init__(self, environment: SmartAccountsEnvironment, reader: ContractReader) -> None:
        self._environment = environment
        self._reader = reader

    def _target(
        self,
        caveat_type: CaveatType,
        delegation: Optional[Delegation],
        delegation_hash: Optional[HexLike],
        terms: Optional[HexLike],
        args: HexLike = b"",
        delegation_manager: Optional[str] = None,
        enforcer_address: Optional[str] = None,
    ) -> _Target:
        manager = require_address(
            delegation_manager or self._environment.delegation_manager, "delegationManager"
        )
        enforcer = require_address(
            enforcer_address or self._environment.enforcer(caveat_type.enforcer_name),
            "enforcer",
        )
        if delegation is not None:
            caveat = find_caveat(delegation, enforcer)
            return _Target(enforcer, manager, hash_delegation(delegation), caveat.terms, caveat.args)
        if delegation_hash is None or terms is None:
            raise ConfigurationError(
                "Either a delegation or both delegation_hash and terms are required."
            )
        return _Target(
            enforcer,
            manager,
            to_bytes(delegation_hash, "delegationHash"),
            to_bytes(terms, "terms"),
            to_bytes(args, "args"),
        )

    def _read(self, address: str, abi: list[dict[str, Any]], function_name: str, *args: Any) -> Any:
        logger.debug("Reading %s on %s", function_name, address)
        return self._reader.read(address, abi, function_name, list(args))

    # ------------------------------------------------------------------
    # Periodic allowances
    # ------------------------------------------------------------------

    def _period_result(self, raw: Sequence[Any]) -> PeriodTransferResult:
        available_amount, is_new_period, current_period = raw
        return PeriodTransferResult(
            available_amount=int(available_amount),
            is_new_period=bool(is_new_period),
            current_period=int(current_period),
        )

    def get_erc20_period_transfer_available_amount(
        self,
        *,
        delegation: Optional[Delegation] = None,
        delegation_hash: Optional[HexLike] = None,
        terms: Optional[HexLike] = None,
        delegation_manager: Optional[str] = None,
        enforcer_address: Optional[str] = None,
    ) -> PeriodTransferResult:
        target = self._target(
            CaveatType.ERC20_PERIOD_TRANSFER,
            delegation,
            delegation_hash,
            terms,
            delegation_manager=delegation_manager,
            enforcer_address=enforcer_address,
        )
        raw = self._read(
            target.enforcer,
            PERIOD_TRANSFER_ABI,
            "getAvailableAmount",
            target.delegation_hash,
            target.delegation_manager,
            target.terms,
        )
        return self._period_result(raw)

    def get_native_token_period_transfer_available_amount(
        self,
        *,
        delegation: Optional[Delegation] = None,
        delegation_hash: Optional[HexLike] = None,
        terms: Optional[HexLike] = None,
        delegation_manager: Optional[str] = None,
        enforcer_address: Optional[str] = None,
    ) -> PeriodTransferResult:
        target = self._target(
            CaveatType.NATIVE_TOKEN_PERIOD_TRANSFER,
            delegation,
            delegation_hash,
            terms,
            delegation_manager=delegation_manager,
            enforcer_address=enforcer_address,
        )
        raw = self._read(
            target.enforcer,
            PERIOD_TRANSFER_ABI,
            "getAvailableAmount",
            target.delegation_hash,
            target.delegation_manager,
            target.terms,
        )
        return self._period_result(raw)

    def get_multi_token_period_available_amount(
        self,
        *,
        delegation: Optional[Delegation] = None,
        delegation_hash: Optional[HexLike] = None,
        terms: Optional[HexLike] = None,
        args: HexLike = b"",
        delegation_manager: Optional[str] = None,
        enforcer_address: Optional[str] = None,
    ) -> PeriodTransferResult:
        """Allowance of one token of a multi-token period caveat.

        *args* (or the caveat's own ``args`` when a delegation is given)
        carries the index of the token block inside the terms.
        """
        target = self._target(
            CaveatType.MULTI_TOKEN_PERIOD,
            delegation,
            delegation_hash,
            terms,
            args,
            delegation_manager=delegation_manager,
            enforcer_address=enforcer_address,
        )
        raw = self._read(
            target.enforcer,
            MULTI_TOKEN_PERIOD_ABI,
            "getAvailableAmount",
            target.delegation_hash,
            target.delegation_manager,
            target.terms,
            target.args,
        )
        return self._period_result(raw)

    # ------------------------------------------------------------------
    # Streaming allowances
    # ------------------------------------------------------------------

    def get_erc20_streaming_available_amount(
        self,
        *,
        delegation: Optional[Delegation] = None,
        delegation_hash: Optional[HexLike] = None,
        terms: Optional[HexLike] = None,
        delegation_manager: Optional[str] = None,
        enforcer_address: Optional[str] = None,
    ) -> StreamingResult:
        target = self._target(
            CaveatType.ERC20_STREAMING,
            delegation,
            delegation_hash,
            terms if terms is not None else b"",
            delegation_manager=delegation_manager,
            enforcer_address=enforcer_address,
        )
        raw = self._read(
            target.enforcer,
            ERC20_STREAMING_ABI,
            "getAvailableAmount",
            target.delegation_manager,
            target.delegation_hash,
        )
        return StreamingResult(available_amount=int(raw))

    def get_native_token_streaming_available_amount(
        self,
        *,
        delegation: Optional[Delegation] = None,
        delegation_hash: Optional[HexLike] = None,
        terms: Optional[HexLike] = None,
        delegation_manager: Optional[str] = None,
        enforcer_address: Optional[str] = None,
    ) -> StreamingResult:
        """Compute the native stream allowance from on-chain state.

        When the enforcer has no state for the delegation yet (it was never
        redeemed), the stream parameters are decoded from *terms* and
        nothing is considered spent.
        """
        target = self._target(
            CaveatType.NATIVE_TOKEN_STREAMING,
            delegation,
            delegation_hash,
            terms,
            delegation_manager=delegation_manager,
            enforcer_address=enforcer_address,
        )
        now = self._reader.block_timestamp()
        initial, maximum, per_second, start, spent = self._read(
            target.enforcer,
            NATIVE_TOKEN_STREAMING_ABI,
            "streamingAllowances",
            target.delegation_manager,
            target.delegation_hash,
        )
        if int(start) == 0:
            decoded = decode_native_token_streaming_terms(target.terms)
            initial, maximum, per_second, start, spent = (
                decoded.initial_amount,
                decoded.max_amount,
                decoded.amount_per_second,
                decoded.start_time,
                0,
            )
        available = streaming_available_amount(
            int(initial), int(maximum), int(per_second), int(start), int(spent), now
        )
        return StreamingResult(available_amount=available)

    # ------------------------------------------------------------------
    # Counters
    # ------------------------------------------------------------------

    def get_spent_amount(
        self,
        caveat_type: CaveatType,
        delegation_hash: HexLike,
        delegation_manager: Optional[str] = None,
    ) -> int:
        """Amount already spent under an ERC-20 or native transfer amount caveat."""
        if caveat_type not in (
            CaveatType.ERC20_TRANSFER_AMOUNT,
            CaveatType.NATIVE_TOKEN_TRANSFER_AMOUNT,
        ):
            raise ConfigurationError(f"{caveat_type.value} does not track a spent amount")
        return int(
            self._read(
                self._environment.enforcer(caveat_type.enforcer_name),
                SPENT_MAP_ABI,
                "spentMap",
                delegation_manager or self._environment.delegation_manager,
                to_bytes(delegation_hash, "delegationHash"),
            )
        )

    def get_call_count(
        self, delegation_hash: HexLike, delegation_manager: Optional[str] = None
    ) -> int:
        """Number of redemptions counted by the limited calls enforcer."""
        return int(
            self._read(
                self._environment.enforcer(CaveatType.LIMITED_CALLS.enforcer_name),
                LIMITED_CALLS_ABI,
                "callCounts",
                delegation_manager or self._environment.delegation_manager,
                to_bytes(delegation_hash, "delegationHash"),
            )
        )

    def get_current_nonce(self, delegator: str, delegation_manager: Optional[str] = None) -> int:
        """Current nonce of *delegator* in the nonce enforcer."""
        return int(
            self._read(
                self._environment.enforcer(CaveatType.NONCE.enforcer_name),
                NONCE_ABI,
                "currentNonce",
                delegation_manager or self._environment.delegation_manager,
                require_address(delegator, "delegator"),
            )
        )

    def is_id_used(self, delegator: str, id_value: int, delegation_manager: Optional[str] = None) -> bool:
        """Whether a delegation carrying *id_value* has been redeemed."""
        return bool(
            self._read(
                self._environment.enforcer(CaveatType.ID.enforcer_name),
                ID_ABI,
                "getIsUsed",
                delegation_manager or self._environment.delegation_manager,
                require_address(delegator, "delegator"),
                id_value,
            )
        )

    def is_delegation_disabled(self, delegation: Delegation | HexLike) -> bool:
        """Whether the delegator has disabled the delegation on the DelegationManager."""
        delegation_hash = (
            hash_delegation(delegation)
            if isinstance(delegation, Delegation)
            else to_bytes(delegation, "delegationHash")
        )
        return bool(
            self._read(
                self._environment.delegation_manager,
                DELEGATION_MANAGER_ABI,
                "disabledDelegations",
                delegation_hash,
            )
        )
