"""Tests for delegation_toolkit.scope — scope resolution and dict loading."""
from __future__ import annotations

import pytest

from delegation_toolkit import scope as scope_module
from delegation_toolkit.caveats.builder import create_caveat_builder
from delegation_toolkit.caveats.types import Caveat
from delegation_toolkit.environment import SmartAccountsEnvironment
from delegation_toolkit.errors import (
    AmbiguousScopeError,
    CaveatValidationError,
    InvalidScopeError,
)
from delegation_toolkit.scope import (
    AllowedCalldata,
    Erc20PeriodicScope,
    Erc20StreamingScope,
    Erc20TransferBatchScope,
    Erc20TransferScope,
    Erc721Scope,
    FunctionCallScope,
    NativeTokenPeriodicScope,
    NativeTokenStreamingScope,
    NativeTokenTransferScope,
    OwnershipScope,
    create_caveat_builder_from_scope,
    resolve_caveats,
    scope_from_dict,
)
from support import RECIPIENT, TARGET, TOKEN, enforcer_address

START = 1_700_000_000


def enforcers(caveats: list[Caveat]) -> list[str]:
    return [caveat.enforcer for caveat in caveats]


# ---------------------------------------------------------------------------
# ERC-20 scopes
# ---------------------------------------------------------------------------


class TestErc20Scopes:
    def test_transfer_scope(self, environment: SmartAccountsEnvironment) -> None:
        caveats = create_caveat_builder_from_scope(
            environment, Erc20TransferScope(token_address=TOKEN, max_amount=100)
        ).build()
        assert enforcers(caveats) == [
            enforcer_address("ValueLteEnforcer"),
            enforcer_address("ERC20TransferAmountEnforcer"),
        ]
        assert caveats[0].terms == b"\x00" * 32

    def test_streaming_scope(self, environment: SmartAccountsEnvironment) -> None:
        caveats = create_caveat_builder_from_scope(
            environment,
            Erc20StreamingScope(
                token_address=TOKEN,
                initial_amount=1,
                max_amount=10,
                amount_per_second=1,
                start_time=START,
            ),
        ).build()
        assert enforcers(caveats) == [
            enforcer_address("ValueLteEnforcer"),
            enforcer_address("ERC20StreamingEnforcer"),
        ]

    def test_periodic_scope(self, environment: SmartAccountsEnvironment) -> None:
        caveats = create_caveat_builder_from_scope(
            environment,
            Erc20PeriodicScope(
                token_address=TOKEN, period_amount=5, period_duration=60, start_date=START
            ),
        ).build()
        assert enforcers(caveats)[1] == enforcer_address("ERC20PeriodTransferEnforcer")

    def test_transfer_batch_scope(self, environment: SmartAccountsEnvironment) -> None:
        caveats = create_caveat_builder_from_scope(
            environment,
            Erc20TransferBatchScope(
                token_address=TOKEN, recipient=RECIPIENT, amount=5, target=TARGET, calldata="0x12"
            ),
        ).build()
        assert enforcers(caveats) == [
            enforcer_address("ValueLteEnforcer"),
            enforcer_address("SpecificActionERC20TransferBatchEnforcer"),
        ]

    def test_invalid_amount_propagates(self, environment: SmartAccountsEnvironment) -> None:
        with pytest.raises(CaveatValidationError):
            create_caveat_builder_from_scope(
                environment, Erc20TransferScope(token_address=TOKEN, max_amount=0)
            )


# ---------------------------------------------------------------------------
# Native token scopes
# ---------------------------------------------------------------------------


class TestNativeTokenScopes:
    def test_transfer_scope_forbids_calldata(self, environment: SmartAccountsEnvironment) -> None:
        caveats = create_caveat_builder_from_scope(
            environment, NativeTokenTransferScope(max_amount=1000)
        ).build()
        assert enforcers(caveats) == [
            enforcer_address("ExactCalldataEnforcer"),
            enforcer_address("NativeTokenTransferAmountEnforcer"),
        ]
        assert caveats[0].terms == b""

    def test_streaming_default_calldata(self, environment: SmartAccountsEnvironment) -> None:
        caveats = create_caveat_builder_from_scope(
            environment,
            NativeTokenStreamingScope(
                initial_amount=0, max_amount=10, amount_per_second=1, start_time=START
            ),
        ).build()
        assert enforcers(caveats) == [
            enforcer_address("ExactCalldataEnforcer"),
            enforcer_address("NativeTokenStreamingEnforcer"),
        ]

    def test_streaming_allowed_calldata(self, environment: SmartAccountsEnvironment) -> None:
        caveats = create_caveat_builder_from_scope(
            environment,
            NativeTokenStreamingScope(
                initial_amount=0,
                max_amount=10,
                amount_per_second=1,
                start_time=START,
                allowed_calldata=(AllowedCalldata(0, "0x12"), AllowedCalldata(4, "0x34")),
            ),
        ).build()
        assert enforcers(caveats) == [
            enforcer_address("AllowedCalldataEnforcer"),
            enforcer_address("AllowedCalldataEnforcer"),
            enforcer_address("NativeTokenStreamingEnforcer"),
        ]

    def test_periodic_exact_calldata(self, environment: SmartAccountsEnvironment) -> None:
        caveats = create_caveat_builder_from_scope(
            environment,
            NativeTokenPeriodicScope(
                period_amount=5, period_duration=60, start_date=START, exact_calldata="0xabcd"
            ),
        ).build()
        assert caveats[0].enforcer == enforcer_address("ExactCalldataEnforcer")
        assert caveats[0].terms == b"\xab\xcd"

    def test_both_calldata_rules_rejected(self, environment: SmartAccountsEnvironment) -> None:
        scope = NativeTokenPeriodicScope(
            period_amount=5,
            period_duration=60,
            start_date=START,
            allowed_calldata=(AllowedCalldata(0, "0x12"),),
            exact_calldata="0x12",
        )
        with pytest.raises(InvalidScopeError, match="cannot be combined"):
            create_caveat_builder_from_scope(environment, scope)


# ---------------------------------------------------------------------------
# Other scopes
# ---------------------------------------------------------------------------


class TestOtherScopes:
    def test_erc721_scope(self, environment: SmartAccountsEnvironment) -> None:
        caveats = create_caveat_builder_from_scope(
            environment, Erc721Scope(token_address=TOKEN, token_id=42)
        ).build()
        assert enforcers(caveats) == [enforcer_address("ERC721TransferEnforcer")]

    def test_ownership_scope(self, environment: SmartAccountsEnvironment) -> None:
        caveats = create_caveat_builder_from_scope(
            environment, OwnershipScope(contract_address=TARGET)
        ).build()
        assert enforcers(caveats) == [enforcer_address("OwnershipTransferEnforcer")]

    def test_function_call_scope(self, environment: SmartAccountsEnvironment) -> None:
        caveats = create_caveat_builder_from_scope(
            environment,
            FunctionCallScope(
                targets=[TARGET],
                selectors=["transfer(address,uint256)"],
                allowed_calldata=(AllowedCalldata(4, "0x00"),),
                exact_calldata="0x",
            ),
        ).build()
        assert enforcers(caveats) == [
            enforcer_address("AllowedTargetsEnforcer"),
            enforcer_address("AllowedMethodsEnforcer"),
            enforcer_address("AllowedCalldataEnforcer"),
            enforcer_address("ExactCalldataEnforcer"),
        ]

    def test_unknown_scope_object(self, environment: SmartAccountsEnvironment) -> None:
        with pytest.raises(InvalidScopeError, match="Invalid scope type"):
            create_caveat_builder_from_scope(environment, object())  # type: ignore[arg-type]

    def test_builder_accepts_further_caveats(self, environment: SmartAccountsEnvironment) -> None:
        builder = create_caveat_builder_from_scope(environment, Erc721Scope(TOKEN, 1))
        caveats = builder.add_caveat("limitedCalls", limit=1).build()
        assert len(caveats) == 2


# ---------------------------------------------------------------------------
# scope_from_dict
# ---------------------------------------------------------------------------


class TestScopeFromDict:
    def test_explicit_type(self) -> None:
        scope = scope_from_dict(
            {"type": "erc20TransferAmount", "tokenAddress": TOKEN, "maxAmount": 100}
        )
        assert scope == Erc20TransferScope(token_address=TOKEN, max_amount=100)

    def test_erc20_shape_dispatch(self) -> None:
        scope = scope_from_dict(
            {
                "type": "erc20",
                "tokenAddress": TOKEN,
                "periodAmount": 1,
                "periodDuration": 60,
                "startDate": START,
            }
        )
        assert isinstance(scope, Erc20PeriodicScope)

    def test_native_shape_dispatch(self) -> None:
        assert scope_from_dict({"type": "nativeToken", "maxAmount": 5}) == NativeTokenTransferScope(
            max_amount=5
        )

    def test_native_with_exact_calldata_object(self) -> None:
        scope = scope_from_dict(
            {
                "type": "nativeToken",
                "periodAmount": 1,
                "periodDuration": 60,
                "startDate": START,
                "exactCalldata": {"calldata": "0x1234"},
            }
        )
        assert isinstance(scope, NativeTokenPeriodicScope)
        assert scope.exact_calldata == "0x1234"

    def test_native_with_allowed_calldata(self) -> None:
        scope = scope_from_dict(
            {
                "type": "nativeTokenStreaming",
                "initialAmount": 0,
                "maxAmount": 10,
                "amountPerSecond": 1,
                "startTime": START,
                "allowedCalldata": [{"startIndex": 4, "value": "0x12"}],
            }
        )
        assert isinstance(scope, NativeTokenStreamingScope)
        assert scope.allowed_calldata == (AllowedCalldata(start_index=4, value="0x12"),)

    def test_function_call(self) -> None:
        scope = scope_from_dict(
            {"type": "functionCall", "targets": [TARGET], "selectors": ["0xa9059cbb"]}
        )
        assert isinstance(scope, FunctionCallScope)

    def test_shape_without_match(self) -> None:
        with pytest.raises(InvalidScopeError, match="Invalid erc20 configuration"):
            scope_from_dict({"type": "erc20", "tokenAddress": TOKEN})

    def test_foreign_key_prevents_match(self) -> None:
        with pytest.raises(InvalidScopeError):
            scope_from_dict({"type": "nativeToken", "maxAmount": 5, "tokenAddress": TOKEN})

    def test_ambiguous_shape(self, monkeypatch: pytest.MonkeyPatch) -> None:
        shape = frozenset({"maxAmount"})
        monkeypatch.setitem(
            scope_module._LEGACY_SHAPES,
            "nativeToken",
            [
                (NativeTokenTransferScope, shape, frozenset()),
                (Erc20TransferScope, shape, frozenset()),
            ],
        )
        with pytest.raises(AmbiguousScopeError, match="Ambiguous nativeToken configuration"):
            scope_from_dict({"type": "nativeToken", "maxAmount": 5})

    def test_unknown_type(self) -> None:
        with pytest.raises(InvalidScopeError, match="Invalid scope type: nope"):
            scope_from_dict({"type": "nope"})

    def test_unexpected_field(self) -> None:
        with pytest.raises(InvalidScopeError):
            scope_from_dict({"type": "ownershipTransfer", "contractAddress": TARGET, "foo": 1})


# ---------------------------------------------------------------------------
# resolve_caveats
# ---------------------------------------------------------------------------


class TestResolveCaveats:
    def test_scope_caveats_come_first(self, environment: SmartAccountsEnvironment) -> None:
        caveats = resolve_caveats(
            environment,
            {"type": "nativeToken", "maxAmount": 5},
            [{"type": "limitedCalls", "limit": 1}],
        )
        assert enforcers(caveats) == [
            enforcer_address("ExactCalldataEnforcer"),
            enforcer_address("NativeTokenTransferAmountEnforcer"),
            enforcer_address("LimitedCallsEnforcer"),
        ]

    def test_extra_caveat_objects(self, environment: SmartAccountsEnvironment) -> None:
        extra = Caveat(enforcer=TARGET, terms=b"\x01")
        caveats = resolve_caveats(environment, OwnershipScope(TARGET), [extra])
        assert caveats[-1] == extra

    def test_extra_builder(self, environment: SmartAccountsEnvironment) -> None:
        extra = create_caveat_builder(environment).add_caveat("limitedCalls", limit=3)
        caveats = resolve_caveats(environment, OwnershipScope(TARGET), extra)
        assert enforcers(caveats)[-1] == enforcer_address("LimitedCallsEnforcer")

    def test_invalid_extra_caveat(self, environment: SmartAccountsEnvironment) -> None:
        with pytest.raises(CaveatValidationError, match="^Invalid caveat: "):
            resolve_caveats(
                environment, OwnershipScope(TARGET), [{"type": "limitedCalls", "limit": 0}]
            )

    def test_unknown_extra_caveat(self, environment: SmartAccountsEnvironment) -> None:
        with pytest.raises(CaveatValidationError, match="^Invalid caveat: "):
            resolve_caveats(environment, OwnershipScope(TARGET), [{"type": "nope"}])

    def test_token_config_missing_token(self, environment: SmartAccountsEnvironment) -> None:
        extra = {
            "type": "multiTokenPeriod",
            "tokenConfigs": [{"periodAmount": 10, "periodDuration": 3600, "startDate": 1}],
        }
        with pytest.raises(CaveatValidationError, match="^Invalid caveat: .*token"):
            resolve_caveats(environment, OwnershipScope(TARGET), [extra])
