"""Scopes: high-level delegation intents resolved to ordered caveat lists.

Each scope configuration is a frozen dataclass whose ``scope_type`` names
the intent. :func:`create_caveat_builder_from_scope` turns one into a
pre-populated :class:`~delegation_toolkit.caveats.builder.CaveatBuilder`:

* ERC-20 scopes start with ``valueLte(0)`` so the delegate cannot move
  native value alongside the token.
* Native token scopes start with a call data restriction (``exactCalldata("0x")``
  unless the caller supplies one) so a contract call cannot pass as a plain
  transfer.

:func:`scope_from_dict` reads the camelCase JSON shape, including the
``erc20`` and ``nativeToken`` kinds that pick a variant from the fields
present.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import ClassVar, Optional, Union

from delegation_toolkit.caveats.builder import (
    CaveatBuilder,
    create_caveat_builder,
    snake_case_config,
)
from delegation_toolkit.caveats.terms import MethodSelector
from delegation_toolkit.caveats.types import Caveat, CaveatType
from delegation_toolkit.environment import SmartAccountsEnvironment
from delegation_toolkit.errors import (
    AmbiguousScopeError,
    CaveatValidationError,
    DelegationToolkitError,
    InvalidScopeError,
)
from delegation_toolkit.hexutils import HexLike

logger = logging.getLogger(__name__)

FUNCTION_CALL_SCOPE: str = "functionCall"


@dataclass(frozen=True)
class AllowedCalldata:
    """Call data fragment *value* required at byte offset *start_index*."""

    start_index: int
    value: HexLike


# ------------------------------------------------------------------
# Scope configurations
# ------------------------------------------------------------------


@dataclass(frozen=True)
class Erc20TransferScope:
    scope_type: ClassVar[str] = CaveatType.ERC20_TRANSFER_AMOUNT.value

    token_address: str
    max_amount: int


@dataclass(frozen=True)
class Erc20StreamingScope:
    scope_type: ClassVar[str] = CaveatType.ERC20_STREAMING.value

    token_address: str
    initial_amount: int
    max_amount: int
    amount_per_second: int
    start_time: int


@dataclass(frozen=True)
class Erc20PeriodicScope:
    scope_type: ClassVar[str] = CaveatType.ERC20_PERIOD_TRANSFER.value

    token_address: str
    period_amount: int
    period_duration: int
    start_date: int


@dataclass(frozen=True)
class Erc20TransferBatchScope:
    """One exact call to *target* followed by one ERC-20 transfer."""

    scope_type: ClassVar[str] = CaveatType.SPECIFIC_ACTION_ERC20_TRANSFER_BATCH.value

    token_address: str
    recipient: str
    amount: int
    target: str
    calldata: HexLike


@dataclass(frozen=True)
class NativeTokenTransferScope:
    scope_type: ClassVar[str] = CaveatType.NATIVE_TOKEN_TRANSFER_AMOUNT.value

    max_amount: int


@dataclass(frozen=True)
class NativeTokenStreamingScope:
    """Native token stream; call data defaults to empty unless restricted here.

    ``allowed_calldata`` and ``exact_calldata`` are mutually exclusive.
    """

    scope_type: ClassVar[str] = CaveatType.NATIVE_TOKEN_STREAMING.value

    initial_amount: int
    max_amount: int
    amount_per_second: int
    start_time: int
    allowed_calldata: Sequence[AllowedCalldata] = field(default_factory=tuple)
    exact_calldata: Optional[HexLike] = None


@dataclass(frozen=True)
class NativeTokenPeriodicScope:
    """Native token periodic allowance; call data rules as for streaming."""

    scope_type: ClassVar[str] = CaveatType.NATIVE_TOKEN_PERIOD_TRANSFER.value

    period_amount: int
    period_duration: int
    start_date: int
    allowed_calldata: Sequence[AllowedCalldata] = field(default_factory=tuple)
    exact_calldata: Optional[HexLike] = None


@dataclass(frozen=True)
class Erc721Scope:
    scope_type: ClassVar[str] = CaveatType.ERC721_TRANSFER.value

    token_address: str
    token_id: int


@dataclass(frozen=True)
class OwnershipScope:
    scope_type: ClassVar[str] = CaveatType.OWNERSHIP_TRANSFER.value

    contract_address: str


@dataclass(frozen=True)
class FunctionCallScope:
    """Calls to *targets* using *selectors*, optionally pinned to call data."""

    scope_type: ClassVar[str] = FUNCTION_CALL_SCOPE

    targets: Sequence[str]
    selectors: Sequence[MethodSelector]
    allowed_calldata: Sequence[AllowedCalldata] = field(default_factory=tuple)
    exact_calldata: Optional[HexLike] = None


ScopeConfig = Union[
    Erc20TransferScope,
    Erc20StreamingScope,
    Erc20PeriodicScope,
    Erc20TransferBatchScope,
    NativeTokenTransferScope,
    NativeTokenStreamingScope,
    NativeTokenPeriodicScope,
    Erc721Scope,
    OwnershipScope,
    FunctionCallScope,
]

SCOPE_TYPES: dict[str, type] = {
    scope.scope_type: scope
    for scope in (
        Erc20TransferScope,
        Erc20StreamingScope,
        Erc20PeriodicScope,
        Erc20TransferBatchScope,
        NativeTokenTransferScope,
        NativeTokenStreamingScope,
        NativeTokenPeriodicScope,
        Erc721Scope,
        OwnershipScope,
        FunctionCallScope,
    )
}


# ------------------------------------------------------------------
# Resolution
# ------------------------------------------------------------------


def _add_native_calldata_rules(
    builder: CaveatBuilder,
    allowed_calldata: Sequence[AllowedCalldata],
    exact_calldata: Optional[HexLike],
) -> None:
    if allowed_calldata and exact_calldata is not None:
        raise InvalidScopeError(
            "allowed_calldata and exact_calldata cannot be combined in a native token scope"
        )
    if allowed_calldata:
        for rule in allowed_calldata:
            builder.add_caveat(
                CaveatType.ALLOWED_CALLDATA, start_index=rule.start_index, value=rule.value
            )
    elif exact_calldata is not None:
        builder.add_caveat(CaveatType.EXACT_CALLDATA, calldata=exact_calldata)
    else:
        builder.add_caveat(CaveatType.EXACT_CALLDATA, calldata="0x")


def create_caveat_builder_from_scope(
    environment: SmartAccountsEnvironment, scope: ScopeConfig
) -> CaveatBuilder:
    """Return a caveat builder pre-populated with the caveats of *scope*.

    Parameters
    ----------
    environment:
        Contract addresses for the caveat enforcers.
    scope:
        One of the scope configuration dataclasses in this module.

    Returns
    -------
    CaveatBuilder
        A core caveat builder; callers may add further caveats before
        calling ``build()``.

    Raises
    ------
    InvalidScopeError
        If *scope* is not a known scope configuration or combines
        mutually exclusive options.
    CaveatValidationError
        If a value in *scope* fails caveat validation.
    """
    builder = create_caveat_builder(environment)

    if isinstance(scope, Erc20TransferScope):
        builder.add_caveat(CaveatType.VALUE_LTE, max_value=0)
        builder.add_caveat(
            CaveatType.ERC20_TRANSFER_AMOUNT,
            token_address=scope.token_address,
            max_amount=scope.max_amount,
        )
    elif isinstance(scope, Erc20StreamingScope):
        builder.add_caveat(CaveatType.VALUE_LTE, max_value=0)
        builder.add_caveat(
            CaveatType.ERC20_STREAMING,
            token_address=scope.token_address,
            initial_amount=scope.initial_amount,
            max_amount=scope.max_amount,
            amount_per_second=scope.amount_per_second,
            start_time=scope.start_time,
        )
    elif isinstance(scope, Erc20PeriodicScope):
        builder.add_caveat(CaveatType.VALUE_LTE, max_value=0)
        builder.add_caveat(
            CaveatType.ERC20_PERIOD_TRANSFER,
            token_address=scope.token_address,
            period_amount=scope.period_amount,
            period_duration=scope.period_duration,
            start_date=scope.start_date,
        )
    elif isinstance(scope, Erc20TransferBatchScope):
        builder.add_caveat(CaveatType.VALUE_LTE, max_value=0)
        builder.add_caveat(
            CaveatType.SPECIFIC_ACTION_ERC20_TRANSFER_BATCH,
            token_address=scope.token_address,
            recipient=scope.recipient,
            amount=scope.amount,
            target=scope.target,
            calldata=scope.calldata,
        )
    elif isinstance(scope, NativeTokenTransferScope):
        builder.add_caveat(CaveatType.EXACT_CALLDATA, calldata="0x")
        builder.add_caveat(
            CaveatType.NATIVE_TOKEN_TRANSFER_AMOUNT, max_amount=scope.max_amount
        )
    elif isinstance(scope, NativeTokenStreamingScope):
        _add_native_calldata_rules(builder, scope.allowed_calldata, scope.exact_calldata)
        builder.add_caveat(
            CaveatType.NATIVE_TOKEN_STREAMING,
            initial_amount=scope.initial_amount,
            max_amount=scope.max_amount,
            amount_per_second=scope.amount_per_second,
            start_time=scope.start_time,
        )
    elif isinstance(scope, NativeTokenPeriodicScope):
        _add_native_calldata_rules(builder, scope.allowed_calldata, scope.exact_calldata)
        builder.add_caveat(
            CaveatType.NATIVE_TOKEN_PERIOD_TRANSFER,
            period_amount=scope.period_amount,
            period_duration=scope.period_duration,
            start_date=scope.start_date,
        )
    elif isinstance(scope, Erc721Scope):
        builder.add_caveat(
            CaveatType.ERC721_TRANSFER,
            token_address=scope.token_address,
            token_id=scope.token_id,
        )
    elif isinstance(scope, OwnershipScope):
        builder.add_caveat(
            CaveatType.OWNERSHIP_TRANSFER, contract_address=scope.contract_address
        )
    elif isinstance(scope, FunctionCallScope):
        builder.add_caveat(CaveatType.ALLOWED_TARGETS, targets=list(scope.targets))
        builder.add_caveat(CaveatType.ALLOWED_METHODS, selectors=list(scope.selectors))
        for rule in scope.allowed_calldata:
            builder.add_caveat(
                CaveatType.ALLOWED_CALLDATA, start_index=rule.start_index, value=rule.value
            )
        if scope.exact_calldata is not None:
            builder.add_caveat(CaveatType.EXACT_CALLDATA, calldata=scope.exact_calldata)
    else:
        scope_type = getattr(scope, "scope_type", type(scope).__name__)
        raise InvalidScopeError(f"Invalid scope type: {scope_type}")

    logger.debug("Resolved %s scope to %d caveats", scope.scope_type, len(builder))
    return builder


# ------------------------------------------------------------------
# Dict loading
# ------------------------------------------------------------------

# (variant, required keys, optional keys) for the shape-dispatched kinds.
_LEGACY_SHAPES: dict[str, list[tuple[type, frozenset[str], frozenset[str]]]] = {
    "erc20": [
        (Erc20TransferScope, frozenset({"tokenAddress", "maxAmount"}), frozenset()),
        (
            Erc20StreamingScope,
            frozenset({"tokenAddress", "initialAmount", "maxAmount", "amountPerSecond", "startTime"}),
            frozenset(),
        ),
        (
            Erc20PeriodicScope,
            frozenset({"tokenAddress", "periodAmount", "periodDuration", "startDate"}),
            frozenset(),
        ),
        (
            Erc20TransferBatchScope,
            frozenset({"tokenAddress", "recipient", "amount", "target", "calldata"}),
            frozenset(),
        ),
    ],
    "nativeToken": [
        (NativeTokenTransferScope, frozenset({"maxAmount"}), frozenset()),
        (
            NativeTokenStreamingScope,
            frozenset({"initialAmount", "maxAmount", "amountPerSecond", "startTime"}),
            frozenset({"allowedCalldata", "exactCalldata"}),
        ),
        (
            NativeTokenPeriodicScope,
            frozenset({"periodAmount", "periodDuration", "startDate"}),
            frozenset({"allowedCalldata", "exactCalldata"}),
        ),
    ],
}


def _match_legacy_shape(kind: str, fields: Mapping[str, object]) -> type:
    keys = set(fields)
    matches = [
        variant
        for variant, required, optional in _LEGACY_SHAPES[kind]
        if required <= keys and keys <= required | optional
    ]
    if not matches:
        raise InvalidScopeError(f"Invalid {kind} configuration: fields {sorted(keys)}")
    if len(matches) > 1:
        names = ", ".join(variant.__name__ for variant in matches)
        raise AmbiguousScopeError(f"Ambiguous {kind} configuration matches {names}")
    return matches[0]


def _calldata_rules(value: object) -> tuple[AllowedCalldata, ...]:
    if value is None:
        return ()
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        raise InvalidScopeError("allowedCalldata must be a list of {startIndex, value} objects")
    rules = []
    for item in value:
        if isinstance(item, AllowedCalldata):
            rules.append(item)
            continue
        if not isinstance(item, Mapping):
            raise InvalidScopeError("allowedCalldata entries must be objects")
        config = snake_case_config(item)
        rules.append(AllowedCalldata(start_index=config["start_index"], value=config["value"]))  # type: ignore[arg-type]
    return tuple(rules)


def _exact_calldata(value: object) -> Optional[HexLike]:
    if isinstance(value, Mapping):
        return value.get("calldata")  # type: ignore[return-value]
    return value  # type: ignore[return-value]


def scope_from_dict(data: Mapping[str, object]) -> ScopeConfig:
    """Build a scope configuration from its camelCase JSON shape.

    ``data["type"]`` selects the scope. The ``"erc20"`` and ``"nativeToken"``
    kinds select a variant from the remaining fields; exactly one variant
    must match.

    Raises
    ------
    InvalidScopeError
        If the type is unknown or the fields match no variant.
    AmbiguousScopeError
        If the fields match more than one variant.
    """
    fields = {key: value for key, value in data.items() if key != "type"}
    scope_type = data.get("type")

    if scope_type in _LEGACY_SHAPES:
        scope_cls = _match_legacy_shape(str(scope_type), fields)
    elif scope_type in SCOPE_TYPES:
        scope_cls = SCOPE_TYPES[str(scope_type)]
    else:
        raise InvalidScopeError(f"Invalid scope type: {scope_type}")

    config = snake_case_config(fields)
    if "allowed_calldata" in config:
        config["allowed_calldata"] = _calldata_rules(config["allowed_calldata"])
    if "exact_calldata" in config:
        config["exact_calldata"] = _exact_calldata(config["exact_calldata"])
    try:
        return scope_cls(**config)
    except TypeError as exc:
        raise InvalidScopeError(f"Invalid {scope_type} configuration: {exc}") from exc


# ------------------------------------------------------------------
# Scope plus extra caveats
# ------------------------------------------------------------------

CaveatsInput = Union[CaveatBuilder, Sequence[Union[Caveat, Mapping[str, object]]], None]


def resolve_caveats(
    environment: SmartAccountsEnvironment,
    scope: ScopeConfig | Mapping[str, object],
    caveats: CaveatsInput = None,
) -> list[Caveat]:
    """Resolve *scope* and append further *caveats* after its caveats.

    Parameters
    ----------
    environment:
        Contract addresses for the caveat enforcers.
    scope:
        A scope configuration, or its dict form.
    caveats:
        A caveat builder whose built caveats are appended, or a list of
        :class:`Caveat` objects and ``{"type": ..., **config}`` mappings.

    Raises
    ------
    CaveatValidationError
        If an additional caveat is invalid; the message starts with
        ``"Invalid caveat: "``.
    """
    scope_config = scope_from_dict(scope) if isinstance(scope, Mapping) else scope
    builder = create_caveat_builder_from_scope(environment, scope_config)

    if isinstance(caveats, CaveatBuilder):
        for caveat in caveats.build():
            builder.add_caveat(caveat)
    elif caveats is not None:
        for item in caveats:
            try:
                if isinstance(item, Caveat):
                    builder.add_caveat(item)
                elif isinstance(item, Mapping) and "type" in item:
                    config = snake_case_config(
                        {key: value for key, value in item.items() if key != "type"}
                    )
                    builder.add_caveat(str(item["type"]), **config)
                else:
                    builder.add_caveat(item)  # type: ignore[arg-type]
            except (DelegationToolkitError, TypeError) as exc:
                raise CaveatValidationError(f"Invalid caveat: {exc}") from exc

    return builder.build()
