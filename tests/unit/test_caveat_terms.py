"""Tests for delegation_toolkit.caveats.terms — terms layouts and validation."""
from __future__ import annotations

import pytest

from delegation_toolkit.caveats import terms as t
from delegation_toolkit.caveats.terms import TokenPeriodConfig
from delegation_toolkit.caveats.types import BalanceChangeType
from delegation_toolkit.errors import CaveatValidationError
from delegation_toolkit.execution import Execution
from support import RECIPIENT, TARGET, TOKEN

TRANSFER_SELECTOR = bytes.fromhex("a9059cbb")


def word(value: int, size: int = 32) -> bytes:
    return value.to_bytes(size, "big")


def raw(address: str) -> bytes:
    return bytes.fromhex(address[2:])


# ---------------------------------------------------------------------------
# Value and amount caveats
# ---------------------------------------------------------------------------


class TestValueTerms:
    def test_value_lte_zero_is_zero_word(self) -> None:
        assert t.create_value_lte_terms(0) == b"\x00" * 32

    def test_value_lte_rejects_negative(self) -> None:
        with pytest.raises(CaveatValidationError, match="maxValue"):
            t.create_value_lte_terms(-1)

    def test_erc20_transfer_amount_layout(self) -> None:
        terms = t.create_erc20_transfer_amount_terms(TOKEN, 100)
        assert terms == raw(TOKEN) + word(100)
        assert len(terms) == 52

    def test_erc20_transfer_amount_requires_positive_amount(self) -> None:
        with pytest.raises(CaveatValidationError, match="Invalid maxAmount: must be a positive number"):
            t.create_erc20_transfer_amount_terms(TOKEN, 0)

    def test_erc20_transfer_amount_rejects_bad_address(self) -> None:
        with pytest.raises(CaveatValidationError, match="Invalid tokenAddress: must be a valid address"):
            t.create_erc20_transfer_amount_terms("0x1234", 1)

    def test_native_transfer_amount_allows_zero(self) -> None:
        assert t.create_native_token_transfer_amount_terms(0) == word(0)

    def test_erc721_transfer_layout(self) -> None:
        assert t.create_erc721_transfer_terms(TOKEN, 7) == raw(TOKEN) + word(7)

    def test_native_token_payment_requires_positive_amount(self) -> None:
        with pytest.raises(CaveatValidationError, match="amount"):
            t.create_native_token_payment_terms(RECIPIENT, 0)

    def test_specific_action_batch_layout(self) -> None:
        terms = t.create_specific_action_erc20_transfer_batch_terms(
            TOKEN, RECIPIENT, 5, TARGET, "0xdeadbeef"
        )
        assert terms == raw(TOKEN) + raw(RECIPIENT) + word(5) + raw(TARGET) + bytes.fromhex("deadbeef")

    def test_rejects_bool_amount(self) -> None:
        with pytest.raises(CaveatValidationError, match="must be an integer"):
            t.create_erc20_transfer_amount_terms(TOKEN, True)


# ---------------------------------------------------------------------------
# Balance change caveats
# ---------------------------------------------------------------------------


class TestBalanceChangeTerms:
    def test_erc20_layout_starts_with_change_type(self) -> None:
        terms = t.create_erc20_balance_change_terms(
            TOKEN, RECIPIENT, 10, BalanceChangeType.DECREASE
        )
        assert terms == b"\x01" + raw(TOKEN) + raw(RECIPIENT) + word(10)

    def test_erc1155_layout(self) -> None:
        terms = t.create_erc1155_balance_change_terms(TOKEN, RECIPIENT, 3, 10, 0)
        assert terms == b"\x00" + raw(TOKEN) + raw(RECIPIENT) + word(3) + word(10)

    def test_native_layout(self) -> None:
        terms = t.create_native_balance_change_terms(RECIPIENT, 10, BalanceChangeType.INCREASE)
        assert terms == b"\x00" + raw(RECIPIENT) + word(10)

    def test_invalid_change_type(self) -> None:
        with pytest.raises(CaveatValidationError, match="must be either Increase or Decrease"):
            t.create_erc721_balance_change_terms(TOKEN, RECIPIENT, 1, 2)

    def test_balance_must_be_positive(self) -> None:
        with pytest.raises(CaveatValidationError, match="Invalid balance"):
            t.create_native_balance_change_terms(RECIPIENT, 0, 0)


# ---------------------------------------------------------------------------
# Streaming and periodic allowances
# ---------------------------------------------------------------------------


class TestAllowanceTerms:
    def test_erc20_streaming_layout(self) -> None:
        terms = t.create_erc20_streaming_terms(TOKEN, 10, 100, 2, 1_700_000_000)
        assert len(terms) == 148
        assert terms == raw(TOKEN) + word(10) + word(100) + word(2) + word(1_700_000_000)

    def test_native_streaming_decodes(self) -> None:
        terms = t.create_native_token_streaming_terms(10, 100, 2, 1_700_000_000)
        decoded = t.decode_native_token_streaming_terms(terms)
        assert decoded.initial_amount == 10
        assert decoded.max_amount == 100
        assert decoded.amount_per_second == 2
        assert decoded.start_time == 1_700_000_000
        assert decoded.token_address is None

    def test_streaming_max_below_initial(self) -> None:
        with pytest.raises(CaveatValidationError, match="greater than or equal to initialAmount"):
            t.create_native_token_streaming_terms(100, 10, 2, 1)

    def test_streaming_start_time_required(self) -> None:
        with pytest.raises(CaveatValidationError, match="Invalid startTime: must be a positive number"):
            t.create_native_token_streaming_terms(0, 10, 2, 0)

    def test_streaming_start_time_upper_bound(self) -> None:
        with pytest.raises(CaveatValidationError, match="startTime"):
            t.create_native_token_streaming_terms(0, 10, 2, t.TIMESTAMP_UPPER_BOUND_SECONDS + 1)

    def test_native_period_layout(self) -> None:
        terms = t.create_native_token_period_transfer_terms(5, 86400, 1_700_000_000)
        assert terms == word(5) + word(86400) + word(1_700_000_000)

    def test_erc20_period_decodes(self) -> None:
        terms = t.create_erc20_period_transfer_terms(TOKEN, 5, 86400, 1_700_000_000)
        decoded = t.decode_erc20_period_transfer_terms(terms)
        assert decoded.token_address == TOKEN
        assert decoded.period_amount == 5
        assert decoded.period_duration == 86400

    def test_period_duration_must_be_positive(self) -> None:
        with pytest.raises(CaveatValidationError, match="periodDuration"):
            t.create_native_token_period_transfer_terms(5, 0, 1)


class TestMultiTokenPeriodTerms:
    def test_blocks_in_order(self) -> None:
        terms = t.create_multi_token_period_terms(
            [
                TokenPeriodConfig(TOKEN, 10, 3600, 1),
                {"token": RECIPIENT, "periodAmount": 20, "periodDuration": 60, "startDate": 2},
            ]
        )
        assert len(terms) == 232
        assert terms[:116] == raw(TOKEN) + word(10) + word(3600) + word(1)
        assert terms[116:136] == raw(RECIPIENT)

    def test_decode_returns_configs(self) -> None:
        config = TokenPeriodConfig(TOKEN, 10, 3600, 1)
        assert t.decode_multi_token_period_terms(t.create_multi_token_period_terms([config])) == [config]

    def test_empty_configs(self) -> None:
        with pytest.raises(CaveatValidationError, match="configs array cannot be empty"):
            t.create_multi_token_period_terms([])

    def test_bad_token(self) -> None:
        with pytest.raises(CaveatValidationError, match="Invalid token address: nope"):
            t.create_multi_token_period_terms([TokenPeriodConfig("nope", 1, 1, 1)])

    def test_zero_period_amount(self) -> None:
        with pytest.raises(CaveatValidationError, match="Invalid period amount: must be greater than 0"):
            t.create_multi_token_period_terms([TokenPeriodConfig(TOKEN, 0, 1, 1)])

    def test_zero_period_duration(self) -> None:
        with pytest.raises(CaveatValidationError, match="Invalid period duration: must be greater than 0"):
            t.create_multi_token_period_terms([TokenPeriodConfig(TOKEN, 1, 0, 1)])


# ---------------------------------------------------------------------------
# Time and counter caveats
# ---------------------------------------------------------------------------


class TestTimeAndCounterTerms:
    def test_timestamp_uses_128_bit_halves(self) -> None:
        assert t.create_timestamp_terms(10, 20) == word(10, 16) + word(20, 16)

    def test_timestamp_both_unset(self) -> None:
        assert t.create_timestamp_terms(0, 0) == b"\x00" * 32

    def test_timestamp_order(self) -> None:
        with pytest.raises(CaveatValidationError, match="beforeThreshold must be greater"):
            t.create_timestamp_terms(20, 20)

    def test_timestamp_upper_bound(self) -> None:
        with pytest.raises(CaveatValidationError, match="afterThreshold"):
            t.create_timestamp_terms(t.TIMESTAMP_UPPER_BOUND_SECONDS + 1, 0)

    def test_timestamp_decode(self) -> None:
        assert t.decode_timestamp_terms(t.create_timestamp_terms(10, 0)) == (10, 0)

    def test_block_number_requires_a_bound(self) -> None:
        with pytest.raises(CaveatValidationError, match="At least one"):
            t.create_block_number_terms(0, 0)

    def test_block_number_order(self) -> None:
        with pytest.raises(CaveatValidationError, match="must be less than"):
            t.create_block_number_terms(5, 4)

    def test_block_number_after_only(self) -> None:
        assert t.decode_block_number_terms(t.create_block_number_terms(5, 0)) == (5, 0)

    @pytest.mark.parametrize("limit", [0, -1, True, 1.5])
    def test_limited_calls_invalid(self, limit: object) -> None:
        with pytest.raises(CaveatValidationError, match="Invalid limit: must be a positive integer"):
            t.create_limited_calls_terms(limit)  # type: ignore[arg-type]

    def test_limited_calls(self) -> None:
        assert t.decode_limited_calls_terms(t.create_limited_calls_terms(3)) == 3

    def test_id_negative(self) -> None:
        with pytest.raises(CaveatValidationError, match="Invalid id: must be a non-negative number"):
            t.create_id_terms(-1)

    def test_id_too_large(self) -> None:
        with pytest.raises(CaveatValidationError, match=r"Invalid id: must be less than 2\^256"):
            t.create_id_terms(2**256)

    def test_id_max(self) -> None:
        assert t.create_id_terms(2**256 - 1) == b"\xff" * 32

    def test_nonce_left_padded(self) -> None:
        assert t.create_nonce_terms("0x1") == b"\x00" * 31 + b"\x01"

    def test_nonce_empty(self) -> None:
        with pytest.raises(CaveatValidationError, match="Invalid nonce: must not be empty"):
            t.create_nonce_terms("0x")

    def test_nonce_too_long(self) -> None:
        with pytest.raises(CaveatValidationError, match="32 bytes or less"):
            t.create_nonce_terms("0x" + "ab" * 33)

    def test_nonce_not_hex(self) -> None:
        with pytest.raises(CaveatValidationError, match="valid BytesLike value"):
            t.create_nonce_terms("xyz")


# ---------------------------------------------------------------------------
# Call restriction caveats
# ---------------------------------------------------------------------------


class TestSelectors:
    @pytest.mark.parametrize(
        "selector",
        [
            "transfer(address,uint256)",
            "function transfer(address to, uint256 amount)",
            "transfer(address to, uint256 amount) returns (bool)",
            "0xa9059cbb",
            TRANSFER_SELECTOR,
            {
                "type": "function",
                "name": "transfer",
                "inputs": [
                    {"name": "to", "type": "address"},
                    {"name": "amount", "type": "uint256"},
                ],
            },
        ],
    )
    def test_selector_forms(self, selector: object) -> None:
        assert t.function_selector(selector) == TRANSFER_SELECTOR  # type: ignore[arg-type]

    def test_canonical_signature_with_tuple(self) -> None:
        assert (
            t.canonical_signature("function foo((address a, uint256 b)[] items, bytes data)")
            == "foo((address,uint256)[],bytes)"
        )

    def test_short_hex_selector_rejected(self) -> None:
        with pytest.raises(CaveatValidationError, match="Invalid selector"):
            t.function_selector("0x1234")

    def test_allowed_methods_concatenates(self) -> None:
        terms = t.create_allowed_methods_terms(["0xa9059cbb", "0x095ea7b3"])
        assert terms == TRANSFER_SELECTOR + bytes.fromhex("095ea7b3")

    def test_allowed_methods_empty(self) -> None:
        with pytest.raises(CaveatValidationError, match="at least one selector"):
            t.create_allowed_methods_terms([])


class TestCallRestrictionTerms:
    def test_allowed_targets(self) -> None:
        assert t.create_allowed_targets_terms([TOKEN, TARGET]) == raw(TOKEN) + raw(TARGET)

    def test_allowed_targets_empty(self) -> None:
        with pytest.raises(CaveatValidationError, match="at least one target"):
            t.create_allowed_targets_terms([])

    def test_allowed_targets_invalid(self) -> None:
        with pytest.raises(CaveatValidationError, match="Invalid targets: must be valid addresses"):
            t.create_allowed_targets_terms([TOKEN, "0xbad"])

    def test_redeemer_empty(self) -> None:
        with pytest.raises(CaveatValidationError, match="at least one redeemer"):
            t.create_redeemer_terms([])

    def test_allowed_calldata_layout(self) -> None:
        assert t.create_allowed_calldata_terms(4, "0x1234") == word(4) + b"\x12\x34"

    def test_allowed_calldata_negative_index(self) -> None:
        with pytest.raises(CaveatValidationError, match="startIndex"):
            t.create_allowed_calldata_terms(-1, "0x12")

    def test_exact_calldata_empty(self) -> None:
        assert t.create_exact_calldata_terms("0x") == b""

    def test_exact_calldata_requires_prefix(self) -> None:
        with pytest.raises(CaveatValidationError, match="starting with 0x"):
            t.create_exact_calldata_terms("1234")

    def test_args_equality_check_invalid(self) -> None:
        with pytest.raises(CaveatValidationError, match="args must be a valid hex string"):
            t.create_args_equality_check_terms("zz")

    def test_exact_execution_is_packed(self) -> None:
        terms = t.create_exact_execution_terms(Execution(TARGET, 1, "0x1234"))
        assert terms == raw(TARGET) + word(1) + b"\x12\x34"

    def test_exact_execution_accepts_mapping(self) -> None:
        terms = t.create_exact_execution_terms({"target": TARGET, "value": 0, "callData": "0x"})
        assert terms == raw(TARGET) + word(0)

    def test_exact_execution_batch_decodes(self) -> None:
        executions = [Execution(TARGET, 1, "0x12"), Execution(TOKEN, 0, "0x")]
        terms = t.create_exact_execution_batch_terms(executions)
        assert t.decode_exact_execution_batch_terms(terms) == executions

    def test_exact_execution_batch_empty(self) -> None:
        with pytest.raises(CaveatValidationError, match="array cannot be empty"):
            t.create_exact_execution_batch_terms([])

    def test_exact_calldata_batch_matches_execution_batch(self) -> None:
        executions = [Execution(TARGET, 0, "0xabcd")]
        assert t.create_exact_calldata_batch_terms(executions) == t.create_exact_execution_batch_terms(
            executions
        )

    def test_deployed_layout(self) -> None:
        terms = t.create_deployed_terms(TARGET, "0x01", "0x6080")
        assert terms == raw(TARGET) + word(1) + bytes.fromhex("6080")

    def test_deployed_invalid_salt(self) -> None:
        with pytest.raises(CaveatValidationError, match="Invalid salt"):
            t.create_deployed_terms(TARGET, "salt", "0x6080")

    def test_deployed_invalid_bytecode(self) -> None:
        with pytest.raises(CaveatValidationError, match="Invalid bytecode"):
            t.create_deployed_terms(TARGET, "0x01", "code")

    def test_ownership_transfer(self) -> None:
        assert t.create_ownership_transfer_terms(TARGET) == raw(TARGET)


# ---------------------------------------------------------------------------
# Decoders
# ---------------------------------------------------------------------------


class TestDecoders:
    def test_erc20_transfer_amount(self) -> None:
        terms = t.create_erc20_transfer_amount_terms(TOKEN, 100)
        assert t.decode_erc20_transfer_amount_terms(terms) == (TOKEN, 100)

    def test_erc721_transfer(self) -> None:
        terms = t.create_erc721_transfer_terms(TOKEN, 42)
        assert t.decode_erc721_transfer_terms(terms) == (TOKEN, 42)

    def test_wrong_length(self) -> None:
        with pytest.raises(CaveatValidationError, match="expected 32 bytes, got 2"):
            t.decode_value_lte_terms("0x1234")

    def test_multi_token_period_wrong_length(self) -> None:
        with pytest.raises(CaveatValidationError, match="not a multiple of 116"):
            t.decode_multi_token_period_terms(b"\x00" * 100)
