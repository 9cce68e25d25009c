"""Tests for delegation_toolkit.caveats.builder — CaveatBuilder and encoders."""
from __future__ import annotations

import pytest

from delegation_toolkit.caveats.builder import (
    CaveatBuilder,
    create_caveat_builder,
    snake_case_config,
)
from delegation_toolkit.caveats.encoders import CORE_ENCODERS
from delegation_toolkit.caveats.types import Caveat, CaveatType
from delegation_toolkit.environment import SmartAccountsEnvironment
from delegation_toolkit.errors import (
    CaveatValidationError,
    EnforcerNotFoundError,
    UnknownCaveatTypeError,
    UnrestrictedDelegationError,
)
from delegation_toolkit.execution import Execution, encode_single_execution
from support import TARGET, TOKEN, enforcer_address


@pytest.fixture()
def builder(environment: SmartAccountsEnvironment) -> CaveatBuilder:
    return create_caveat_builder(environment)


def _custom_encoder(environment: SmartAccountsEnvironment, *, flag: int) -> Caveat:
    return Caveat(enforcer=TARGET, terms=bytes([flag]))


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


class TestRegistration:
    def test_every_caveat_type_is_registered(self, builder: CaveatBuilder) -> None:
        assert set(builder.registered_types) == {caveat_type.value for caveat_type in CaveatType}
        assert len(CORE_ENCODERS) == len(CaveatType)

    def test_extend_returns_new_builder(self, builder: CaveatBuilder) -> None:
        extended = builder.extend("custom", _custom_encoder)
        assert extended is not builder
        assert "custom" in extended.registered_types
        assert "custom" not in builder.registered_types

    def test_original_builder_cannot_use_extension(self, builder: CaveatBuilder) -> None:
        builder.extend("custom", _custom_encoder)
        with pytest.raises(UnknownCaveatTypeError):
            builder.add_caveat("custom", flag=1)

    def test_extend_keeps_existing_caveats(self, builder: CaveatBuilder) -> None:
        builder.add_caveat("valueLte", max_value=0)
        extended = builder.extend("custom", _custom_encoder).add_caveat("custom", flag=7)
        caveats = extended.build()
        assert [c.terms for c in caveats] == [b"\x00" * 32, b"\x07"]
        assert len(builder) == 1

    def test_unknown_type_message(self, builder: CaveatBuilder) -> None:
        with pytest.raises(UnknownCaveatTypeError, match='Function "nope" does not exist.'):
            builder.add_caveat("nope")


# ---------------------------------------------------------------------------
# Accumulation
# ---------------------------------------------------------------------------


class TestAddCaveat:
    def test_add_returns_builder_for_chaining(self, builder: CaveatBuilder) -> None:
        assert builder.add_caveat("valueLte", max_value=0) is builder

    def test_insertion_order_is_preserved(self, builder: CaveatBuilder) -> None:
        caveats = (
            builder.add_caveat(CaveatType.LIMITED_CALLS, limit=1)
            .add_caveat("valueLte", max_value=0)
            .add_caveat(CaveatType.LIMITED_CALLS, limit=2)
            .build()
        )
        assert [c.enforcer for c in caveats] == [
            enforcer_address("LimitedCallsEnforcer"),
            enforcer_address("ValueLteEnforcer"),
            enforcer_address("LimitedCallsEnforcer"),
        ]

    def test_misspelled_config_key(self, builder: CaveatBuilder) -> None:
        with pytest.raises(CaveatValidationError, match="Invalid limitedCalls configuration"):
            builder.add_caveat("limitedCalls", limitt=1)

    def test_exact_execution_hex_value(self, builder: CaveatBuilder) -> None:
        (caveat,) = builder.add_caveat(
            "exactExecution", execution={"target": TOKEN, "value": "0x10", "callData": "0x"}
        ).build()
        assert caveat.terms == encode_single_execution(Execution(target=TOKEN, value=16))

    def test_exact_execution_missing_target(self, builder: CaveatBuilder) -> None:
        with pytest.raises(CaveatValidationError, match="missing field 'target'"):
            builder.add_caveat("exactExecution", execution={"value": 1})

    def test_encoder_output(self, builder: CaveatBuilder) -> None:
        (caveat,) = builder.add_caveat(
            "erc20TransferAmount", token_address=TOKEN, max_amount=100
        ).build()
        assert caveat.enforcer == enforcer_address("ERC20TransferAmountEnforcer")
        assert caveat.terms[20:] == (100).to_bytes(32, "big")
        assert caveat.args == b""

    def test_raw_caveat_appended_as_is(self, builder: CaveatBuilder) -> None:
        raw = Caveat(enforcer=TARGET, terms="0x01", args="0x02")
        assert builder.add_caveat(raw).build() == [raw]

    def test_raw_mapping_caveat(self, builder: CaveatBuilder) -> None:
        (caveat,) = builder.add_caveat({"enforcer": TARGET, "terms": "0x01", "args": "0x"}).build()
        assert caveat == Caveat(enforcer=TARGET, terms=b"\x01")

    def test_raw_mapping_missing_args(self, builder: CaveatBuilder) -> None:
        with pytest.raises(TypeError, match="missing fields"):
            builder.add_caveat({"enforcer": TARGET, "terms": "0x01"})

    def test_raw_caveat_with_config(self, builder: CaveatBuilder) -> None:
        with pytest.raises(TypeError):
            builder.add_caveat(Caveat(enforcer=TARGET, terms=b""), limit=1)

    def test_invalid_config(self, builder: CaveatBuilder) -> None:
        with pytest.raises(CaveatValidationError):
            builder.add_caveat("limitedCalls", limit=0)

    def test_missing_enforcer(self, empty_environment: SmartAccountsEnvironment) -> None:
        builder = create_caveat_builder(empty_environment)
        with pytest.raises(EnforcerNotFoundError, match="ValueLteEnforcer not found in environment"):
            builder.add_caveat("valueLte", max_value=0)

    def test_validation_precedes_enforcer_lookup(
        self, empty_environment: SmartAccountsEnvironment
    ) -> None:
        builder = create_caveat_builder(empty_environment)
        with pytest.raises(CaveatValidationError):
            builder.add_caveat("valueLte", max_value=-1)


# ---------------------------------------------------------------------------
# build()
# ---------------------------------------------------------------------------


class TestBuild:
    def test_empty_build_refused(self, builder: CaveatBuilder) -> None:
        with pytest.raises(UnrestrictedDelegationError, match="No caveats found"):
            builder.build()

    def test_empty_build_allowed(self, environment: SmartAccountsEnvironment) -> None:
        builder = create_caveat_builder(environment, allow_insecure_unrestricted_delegation=True)
        assert builder.build() == []

    def test_same_calls_build_identical_caveats(
        self, environment: SmartAccountsEnvironment
    ) -> None:
        def build() -> list[Caveat]:
            return (
                create_caveat_builder(environment)
                .add_caveat("erc20TransferAmount", token_address=TOKEN, max_amount=100)
                .add_caveat("timestamp", after_threshold=1, before_threshold=2)
                .add_caveat("allowedMethods", selectors=["transfer(address,uint256)"])
                .build()
            )

        assert build() == build()

    def test_build_twice_is_stable(self, builder: CaveatBuilder) -> None:
        builder.add_caveat("limitedCalls", limit=2)
        assert builder.build() == builder.build()

    def test_build_returns_copy(self, builder: CaveatBuilder) -> None:
        builder.add_caveat("valueLte", max_value=0)
        first = builder.build()
        first.clear()
        assert len(builder.build()) == 1


def test_snake_case_config() -> None:
    assert snake_case_config({"maxAmount": 1, "tokenAddress": TOKEN, "limit": 2}) == {
        "max_amount": 1,
        "token_address": TOKEN,
        "limit": 2,
    }
