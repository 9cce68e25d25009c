"""Terms creation and decoding for every core caveat kind.

Each ``create_*_terms`` function validates its inputs and returns the packed
byte string the matching enforcer contract decodes. Fixed-width fields are
big-endian words; variable-width fields (call data, selector and address
lists) are concatenated without delimiters, so decoders rely on the
per-kind layout to split them again.

The ``decode_*_terms`` functions invert the fixed-layout kinds so a caveat
can be inspected offline.
"""
from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Union

from eth_abi import decode, encode
from eth_utils import (
    function_abi_to_4byte_selector,
    function_signature_to_4byte_selector,
    to_checksum_address,
)

from delegation_toolkit.caveats.types import BalanceChangeType
from delegation_toolkit.errors import CaveatValidationError
from delegation_toolkit.execution import (
    BATCH_EXECUTION_TYPE,
    Execution,
    encode_single_execution,
)
from delegation_toolkit.hexutils import (
    MAX_UINT256,
    HexLike,
    address_bytes,
    is_hex_string,
    pad_left,
    to_bytes,
    uint_bytes,
)

TIMESTAMP_UPPER_BOUND_SECONDS: int = 253402300799

MethodSelector = Union[str, bytes, Mapping[str, object]]

_SELECTOR_ERROR = (
    "Invalid selector: must be a 4 byte hex string, abi function signature, or AbiFunction"
)
_PARAM_QUALIFIERS = {"indexed", "memory", "calldata", "storage", "payable"}


# ------------------------------------------------------------------
# Value objects
# ------------------------------------------------------------------


@dataclass(frozen=True)
class TokenPeriodConfig:
    """Per-token allowance inside a multi-token period caveat.

    Parameters
    ----------
    token:
        ERC-20 token address. The zero address stands for the native token.
    period_amount:
        Amount that may be transferred in each period.
    period_duration:
        Length of a period in seconds.
    start_date:
        Unix timestamp at which the first period begins.
    """

    token: str
    period_amount: int
    period_duration: int
    start_date: int

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "TokenPeriodConfig":
        """Build from a camelCase or snake_case mapping.

        Raises
        ------
        CaveatValidationError
            If a field is missing in both spellings.
        """
        missing = [
            camel
            for camel, snake in (
                ("token", "token"),
                ("periodAmount", "period_amount"),
                ("periodDuration", "period_duration"),
                ("startDate", "start_date"),
            )
            if camel not in data and snake not in data
        ]
        if missing:
            raise CaveatValidationError(f"Invalid tokenConfig: missing fields {missing}")
        return cls(
            token=data["token"],  # type: ignore[arg-type]
            period_amount=data.get("periodAmount", data.get("period_amount")),  # type: ignore[arg-type]
            period_duration=data.get("periodDuration", data.get("period_duration")),  # type: ignore[arg-type]
            start_date=data.get("startDate", data.get("start_date")),  # type: ignore[arg-type]
        )


@dataclass(frozen=True)
class StreamingTerms:
    """Decoded streaming allowance terms."""

    initial_amount: int
    max_amount: int
    amount_per_second: int
    start_time: int
    token_address: str | None = None


@dataclass(frozen=True)
class PeriodTransferTerms:
    """Decoded periodic allowance terms."""

    period_amount: int
    period_duration: int
    start_date: int
    token_address: str | None = None


# ------------------------------------------------------------------
# Validation helpers
# ------------------------------------------------------------------


def _require_int(value: object, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise CaveatValidationError(f"Invalid {field}: must be an integer")
    return value


def _require_positive(value: object, field: str) -> int:
    number = _require_int(value, field)
    if number <= 0:
        raise CaveatValidationError(f"Invalid {field}: must be a positive number")
    return number


def _require_non_negative(value: object, field: str) -> int:
    number = _require_int(value, field)
    if number < 0:
        raise CaveatValidationError(f"Invalid {field}: must be zero or positive")
    return number


def _require_hex(value: object, field: str) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if not is_hex_string(value):
        raise CaveatValidationError(f"Invalid {field}: must be a valid hex string")
    return to_bytes(value, field)  # type: ignore[arg-type]


def _require_calldata(value: object, field: str = "calldata") -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if not isinstance(value, str) or not value.startswith("0x") or not is_hex_string(value):
        raise CaveatValidationError(
            f"Invalid {field}: must be a hex string starting with 0x"
        )
    return to_bytes(value, field)


def _require_change_type(value: object) -> int:
    if isinstance(value, bool) or value not in (
        BalanceChangeType.INCREASE,
        BalanceChangeType.DECREASE,
    ):
        raise CaveatValidationError(
            "Invalid changeType: must be either Increase or Decrease"
        )
    return int(value)  # type: ignore[arg-type]


def _require_timestamp(value: object, field: str) -> int:
    number = _require_non_negative(value, field)
    if number > TIMESTAMP_UPPER_BOUND_SECONDS:
        raise CaveatValidationError(
            f"Invalid {field}: must be less than or equal to {TIMESTAMP_UPPER_BOUND_SECONDS}"
        )
    return number


def _as_execution(value: object) -> Execution:
    if isinstance(value, Execution):
        return value
    if isinstance(value, Mapping):
        return Execution.from_dict(value)
    raise CaveatValidationError("Invalid execution: must be an Execution or a mapping")


# ------------------------------------------------------------------
# Value and amount caveats
# ------------------------------------------------------------------


def create_value_lte_terms(max_value: int) -> bytes:
    """``uint256 maxValue``. Zero forbids sending any native value."""
    return uint_bytes(_require_non_negative(max_value, "maxValue"), field="maxValue")


def create_erc20_transfer_amount_terms(token_address: str, max_amount: int) -> bytes:
    """``address token ‖ uint256 maxAmount``."""
    token = address_bytes(token_address, "tokenAddress")
    amount = _require_positive(max_amount, "maxAmount")
    return token + uint_bytes(amount, field="maxAmount")


def create_native_token_transfer_amount_terms(max_amount: int) -> bytes:
    """``uint256 maxAmount``."""
    return uint_bytes(_require_non_negative(max_amount, "maxAmount"), field="maxAmount")


def create_erc721_transfer_terms(token_address: str, token_id: int) -> bytes:
    """``address token ‖ uint256 tokenId``."""
    token = address_bytes(token_address, "tokenAddress")
    return token + uint_bytes(_require_non_negative(token_id, "tokenId"), field="tokenId")


def create_native_token_payment_terms(recipient: str, amount: int) -> bytes:
    """``address recipient ‖ uint256 amount``."""
    recipient_bytes = address_bytes(recipient, "recipient")
    return recipient_bytes + uint_bytes(_require_positive(amount, "amount"), field="amount")


def create_specific_action_erc20_transfer_batch_terms(
    token_address: str,
    recipient: str,
    amount: int,
    target: str,
    calldata: HexLike,
) -> bytes:
    """``address token ‖ address recipient ‖ uint256 amount ‖ address target ‖ calldata``."""
    token = address_bytes(token_address, "tokenAddress")
    recipient_bytes = address_bytes(recipient, "recipient")
    target_bytes = address_bytes(target, "target")
    amount_word = uint_bytes(_require_positive(amount, "amount"), field="amount")
    return token + recipient_bytes + amount_word + target_bytes + _require_hex(calldata, "calldata")


# ------------------------------------------------------------------
# Balance change caveats
# ------------------------------------------------------------------


def create_erc20_balance_change_terms(
    token_address: str, recipient: str, balance: int, change_type: int
) -> bytes:
    """``uint8 changeType ‖ address token ‖ address recipient ‖ uint256 balance``."""
    token = address_bytes(token_address, "tokenAddress")
    recipient_bytes = address_bytes(recipient, "recipient")
    balance_word = uint_bytes(_require_positive(balance, "balance"), field="balance")
    tag = _require_change_type(change_type)
    return bytes([tag]) + token + recipient_bytes + balance_word


def create_erc721_balance_change_terms(
    token_address: str, recipient: str, amount: int, change_type: int
) -> bytes:
    """``uint8 changeType ‖ address token ‖ address recipient ‖ uint256 amount``."""
    token = address_bytes(token_address, "tokenAddress")
    recipient_bytes = address_bytes(recipient, "recipient")
    amount_word = uint_bytes(_require_positive(amount, "amount"), field="amount")
    tag = _require_change_type(change_type)
    return bytes([tag]) + token + recipient_bytes + amount_word


def create_erc1155_balance_change_terms(
    token_address: str, recipient: str, token_id: int, balance: int, change_type: int
) -> bytes:
    """``uint8 changeType ‖ address token ‖ address recipient ‖ uint256 tokenId ‖ uint256 balance``."""
    token = address_bytes(token_address, "tokenAddress")
    recipient_bytes = address_bytes(recipient, "recipient")
    id_word = uint_bytes(_require_non_negative(token_id, "tokenId"), field="tokenId")
    balance_word = uint_bytes(_require_positive(balance, "balance"), field="balance")
    tag = _require_change_type(change_type)
    return bytes([tag]) + token + recipient_bytes + id_word + balance_word


def create_native_balance_change_terms(recipient: str, balance: int, change_type: int) -> bytes:
    """``uint8 changeType ‖ address recipient ‖ uint256 balance``."""
    recipient_bytes = address_bytes(recipient, "recipient")
    balance_word = uint_bytes(_require_positive(balance, "balance"), field="balance")
    tag = _require_change_type(change_type)
    return bytes([tag]) + recipient_bytes + balance_word


# ------------------------------------------------------------------
# Streaming and periodic allowances
# ------------------------------------------------------------------


def _streaming_words(
    initial_amount: int, max_amount: int, amount_per_second: int, start_time: int
) -> bytes:
    initial = _require_non_negative(initial_amount, "initialAmount")
    maximum = _require_positive(max_amount, "maxAmount")
    if maximum < initial:
        raise CaveatValidationError(
            "Invalid maxAmount: must be greater than or equal to initialAmount"
        )
    per_second = _require_positive(amount_per_second, "amountPerSecond")
    start = _require_positive(start_time, "startTime")
    if start > TIMESTAMP_UPPER_BOUND_SECONDS:
        raise CaveatValidationError(
            f"Invalid startTime: must be less than or equal to {TIMESTAMP_UPPER_BOUND_SECONDS}"
        )
    return b"".join(
        uint_bytes(word) for word in (initial, maximum, per_second, start)
    )


def create_erc20_streaming_terms(
    token_address: str,
    initial_amount: int,
    max_amount: int,
    amount_per_second: int,
    start_time: int,
) -> bytes:
    """``address token ‖ initial ‖ max ‖ perSecond ‖ startTime`` (32-byte words)."""
    token = address_bytes(token_address, "tokenAddress")
    return token + _streaming_words(initial_amount, max_amount, amount_per_second, start_time)


def create_native_token_streaming_terms(
    initial_amount: int, max_amount: int, amount_per_second: int, start_time: int
) -> bytes:
    """``initial ‖ max ‖ perSecond ‖ startTime`` (32-byte words)."""
    return _streaming_words(initial_amount, max_amount, amount_per_second, start_time)


def _period_words(period_amount: int, period_duration: int, start_date: int) -> bytes:
    amount = _require_positive(period_amount, "periodAmount")
    duration = _require_positive(period_duration, "periodDuration")
    start = _require_positive(start_date, "startDate")
    return uint_bytes(amount) + uint_bytes(duration) + uint_bytes(start)


def create_erc20_period_transfer_terms(
    token_address: str, period_amount: int, period_duration: int, start_date: int
) -> bytes:
    """``address token ‖ periodAmount ‖ periodDuration ‖ startDate``."""
    token = address_bytes(token_address, "tokenAddress")
    return token + _period_words(period_amount, period_duration, start_date)


def create_native_token_period_transfer_terms(
    period_amount: int, period_duration: int, start_date: int
) -> bytes:
    """``periodAmount ‖ periodDuration ‖ startDate``."""
    return _period_words(period_amount, period_duration, start_date)


def create_multi_token_period_terms(
    token_configs: Sequence[TokenPeriodConfig | Mapping[str, object]],
) -> bytes:
    """Concatenate one 116-byte block per token.

    Each block is ``address token(20) ‖ periodAmount(32) ‖ periodDuration(32) ‖
    startDate(32)``. At redemption the enforcer selects a block by its index,
    passed in the caveat ``args``, so block order is part of the contract.
    """
    if not token_configs:
        raise CaveatValidationError(
            "MultiTokenPeriodBuilder: configs array cannot be empty"
        )
    blocks = []
    for raw in token_configs:
        config = raw if isinstance(raw, TokenPeriodConfig) else TokenPeriodConfig.from_dict(raw)
        try:
            token = address_bytes(config.token, "token address")
        except CaveatValidationError:
            raise CaveatValidationError(
                f"Invalid token address: {config.token}"
            ) from None
        if _require_int(config.period_amount, "period amount") <= 0:
            raise CaveatValidationError("Invalid period amount: must be greater than 0")
        if _require_int(config.period_duration, "period duration") <= 0:
            raise CaveatValidationError("Invalid period duration: must be greater than 0")
        start = _require_non_negative(config.start_date, "startDate")
        blocks.append(
            token
            + uint_bytes(config.period_amount)
            + uint_bytes(config.period_duration)
            + uint_bytes(start)
        )
    return b"".join(blocks)


# ------------------------------------------------------------------
# Time and counter caveats
# ------------------------------------------------------------------


def create_timestamp_terms(after_threshold: int, before_threshold: int) -> bytes:
    """``uint128 afterThreshold ‖ uint128 beforeThreshold``; zero leaves a bound unset."""
    after = _require_timestamp(after_threshold, "afterThreshold")
    before = _require_timestamp(before_threshold, "beforeThreshold")
    if before != 0 and after >= before:
        raise CaveatValidationError(
            "Invalid thresholds: beforeThreshold must be greater than afterThreshold "
            "when both are specified"
        )
    return uint_bytes(after, 16, "afterThreshold") + uint_bytes(before, 16, "beforeThreshold")


def create_block_number_terms(block_after_threshold: int, block_before_threshold: int) -> bytes:
    """``uint128 blockAfterThreshold ‖ uint128 blockBeforeThreshold``."""
    after = _require_non_negative(block_after_threshold, "blockAfterThreshold")
    before = _require_non_negative(block_before_threshold, "blockBeforeThreshold")
    if after == 0 and before == 0:
        raise CaveatValidationError(
            "Invalid thresholds: At least one of blockAfterThreshold or "
            "blockBeforeThreshold must be specified"
        )
    if before != 0 and after >= before:
        raise CaveatValidationError(
            "Invalid thresholds: blockAfterThreshold must be less than "
            "blockBeforeThreshold if both are specified"
        )
    return uint_bytes(after, 16, "blockAfterThreshold") + uint_bytes(
        before, 16, "blockBeforeThreshold"
    )


def create_limited_calls_terms(limit: int) -> bytes:
    """``uint256 limit``."""
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise CaveatValidationError("Invalid limit: must be a positive integer")
    return uint_bytes(limit, field="limit")


def create_id_terms(id_value: int) -> bytes:
    """``uint256 id``."""
    if isinstance(id_value, bool) or not isinstance(id_value, int):
        raise CaveatValidationError("Invalid id: must be an integer")
    if id_value < 0:
        raise CaveatValidationError("Invalid id: must be a non-negative number")
    if id_value > MAX_UINT256:
        raise CaveatValidationError("Invalid id: must be less than 2^256")
    return uint_bytes(id_value, field="id")


def create_nonce_terms(nonce: HexLike) -> bytes:
    """Nonce left-padded to a 32-byte word.

    Raises
    ------
    CaveatValidationError
        If *nonce* is empty, not hex, or longer than 32 bytes.
    """
    if isinstance(nonce, str) and not is_hex_string(nonce):
        raise CaveatValidationError("Invalid nonce: must be a valid BytesLike value")
    if not isinstance(nonce, (str, bytes, bytearray)):
        raise CaveatValidationError("Invalid nonce: must be a valid BytesLike value")
    raw = to_bytes(nonce, "nonce")
    if not raw:
        raise CaveatValidationError("Invalid nonce: must not be empty")
    if len(raw) > 32:
        raise CaveatValidationError("Invalid nonce: must be 32 bytes or less in length")
    return pad_left(raw, 32)


# ------------------------------------------------------------------
# Call restriction caveats
# ------------------------------------------------------------------


def _strip_parameter_name(parameter: str) -> str:
    parameter = parameter.strip()
    if parameter.startswith("("):
        depth = 0
        for index, char in enumerate(parameter):
            depth += char == "("
            depth -= char == ")"
            if depth == 0:
                inner = _canonical_parameters(parameter[1:index])
                suffix = parameter[index + 1 :].split()
                array_suffix = suffix[0] if suffix and suffix[0].startswith("[") else ""
                return f"({inner}){array_suffix}"
        raise ValueError(f"Unbalanced parentheses in {parameter!r}")
    tokens = [t for t in parameter.split() if t not in _PARAM_QUALIFIERS]
    if not tokens:
        raise ValueError("Empty parameter")
    return tokens[0]


def _canonical_parameters(parameters: str) -> str:
    parts: list[str] = []
    depth = 0
    current = ""
    for char in parameters:
        if char == "," and depth == 0:
            parts.append(current)
            current = ""
            continue
        depth += char == "("
        depth -= char == ")"
        current += char
    if current.strip():
        parts.append(current)
    return ",".join(_strip_parameter_name(part) for part in parts)


def canonical_signature(signature: str) -> str:
    """Normalize ``"function transfer(address to, uint256 amount)"`` to ``"transfer(address,uint256)"``."""
    text = signature.strip()
    if text.startswith("function "):
        text = text[len("function ") :].strip()
    match = re.match(r"([A-Za-z_$][A-Za-z0-9_$]*)\s*\(", text)
    if match is None:
        raise ValueError(f"Not a function signature: {signature!r}")
    depth = 0
    for index in range(match.end() - 1, len(text)):
        depth += text[index] == "("
        depth -= text[index] == ")"
        if depth == 0:
            parameters = text[match.end() : index]
            return f"{match.group(1)}({_canonical_parameters(parameters)})"
    raise ValueError(f"Unbalanced parentheses in {signature!r}")


def function_selector(selector: MethodSelector) -> bytes:
    """Resolve a 4-byte selector from hex, a signature, or an ABI function entry."""
    if isinstance(selector, (bytes, bytearray)):
        if len(selector) != 4:
            raise CaveatValidationError(_SELECTOR_ERROR)
        return bytes(selector)
    if isinstance(selector, Mapping):
        try:
            return function_abi_to_4byte_selector(dict(selector))
        except (KeyError, TypeError, ValueError) as exc:
            raise CaveatValidationError(_SELECTOR_ERROR) from exc
    if not isinstance(selector, str):
        raise CaveatValidationError(_SELECTOR_ERROR)
    if is_hex_string(selector):
        if len(selector) != 10:
            raise CaveatValidationError(_SELECTOR_ERROR)
        return to_bytes(selector)
    try:
        return function_signature_to_4byte_selector(canonical_signature(selector))
    except ValueError as exc:
        raise CaveatValidationError(_SELECTOR_ERROR) from exc


def create_allowed_methods_terms(selectors: Sequence[MethodSelector]) -> bytes:
    """Concatenated 4-byte selectors."""
    if not selectors:
        raise CaveatValidationError("Invalid selectors: must provide at least one selector")
    return b"".join(function_selector(selector) for selector in selectors)


def _address_list(addresses: Sequence[str], field: str, empty_message: str) -> bytes:
    if not addresses:
        raise CaveatValidationError(empty_message)
    try:
        return b"".join(address_bytes(address, field) for address in addresses)
    except CaveatValidationError:
        raise CaveatValidationError(f"Invalid {field}: must be valid addresses") from None


def create_allowed_targets_terms(targets: Sequence[str]) -> bytes:
    """Concatenated 20-byte target addresses."""
    return _address_list(
        targets, "targets", "Invalid targets: must provide at least one target address"
    )


def create_redeemer_terms(redeemers: Sequence[str]) -> bytes:
    """Concatenated 20-byte redeemer addresses."""
    return _address_list(
        redeemers, "redeemers", "Invalid redeemers: must specify at least one redeemer address"
    )


def create_allowed_calldata_terms(start_index: int, value: HexLike) -> bytes:
    """``uint256 startIndex ‖ value``."""
    if isinstance(start_index, bool) or not isinstance(start_index, int) or start_index < 0:
        raise CaveatValidationError("Invalid startIndex: must be zero or positive")
    return uint_bytes(start_index, field="startIndex") + _require_hex(value, "value")


def create_exact_calldata_terms(calldata: HexLike) -> bytes:
    """The expected call data, unmodified. ``"0x"`` forbids any call data."""
    return _require_calldata(calldata)


def create_args_equality_check_terms(args: HexLike) -> bytes:
    """The expected redemption args, unmodified."""
    if isinstance(args, (bytes, bytearray)):
        return bytes(args)
    if not is_hex_string(args):
        raise CaveatValidationError("Invalid config: args must be a valid hex string")
    return to_bytes(args)


def create_exact_execution_terms(execution: Execution | Mapping[str, object]) -> bytes:
    """``address target ‖ uint256 value ‖ callData`` for the single expected call."""
    return encode_single_execution(_as_execution(execution))


def create_exact_execution_batch_terms(
    executions: Sequence[Execution | Mapping[str, object]],
) -> bytes:
    """ABI ``(address,uint256,bytes)[]`` of the expected calls."""
    if not executions:
        raise CaveatValidationError("Invalid executions: array cannot be empty")
    items = [_as_execution(execution) for execution in executions]
    return encode([BATCH_EXECUTION_TYPE], [[item.as_tuple() for item in items]])


def create_exact_calldata_batch_terms(
    executions: Sequence[Execution | Mapping[str, object]],
) -> bytes:
    """Same layout as :func:`create_exact_execution_batch_terms`."""
    return create_exact_execution_batch_terms(executions)


def create_deployed_terms(contract_address: str, salt: HexLike, bytecode: HexLike) -> bytes:
    """``address contract ‖ bytes32 salt ‖ bytecode``."""
    contract = address_bytes(contract_address, "contractAddress")
    if not isinstance(salt, (bytes, bytearray)) and not is_hex_string(salt):
        raise CaveatValidationError("Invalid salt: must be a valid hexadecimal string")
    if not isinstance(bytecode, (bytes, bytearray)) and not is_hex_string(bytecode):
        raise CaveatValidationError("Invalid bytecode: must be a valid hexadecimal string")
    return contract + pad_left(to_bytes(salt), 32) + to_bytes(bytecode)


def create_ownership_transfer_terms(contract_address: str) -> bytes:
    """``address contract``."""
    return address_bytes(contract_address, "contractAddress")


# ------------------------------------------------------------------
# Decoders
# ------------------------------------------------------------------


def _expect_length(terms: HexLike, length: int, kind: str) -> bytes:
    raw = to_bytes(terms, "terms")
    if len(raw) != length:
        raise CaveatValidationError(
            f"Invalid {kind} terms: expected {length} bytes, got {len(raw)}"
        )
    return raw


def _word(raw: bytes, offset: int, size: int = 32) -> int:
    return int.from_bytes(raw[offset : offset + size], "big")


def _address_at(raw: bytes, offset: int) -> str:
    return to_checksum_address(raw[offset : offset + 20])


def decode_value_lte_terms(terms: HexLike) -> int:
    return _word(_expect_length(terms, 32, "valueLte"), 0)


def decode_native_token_transfer_amount_terms(terms: HexLike) -> int:
    return _word(_expect_length(terms, 32, "nativeTokenTransferAmount"), 0)


def decode_limited_calls_terms(terms: HexLike) -> int:
    return _word(_expect_length(terms, 32, "limitedCalls"), 0)


def decode_id_terms(terms: HexLike) -> int:
    return _word(_expect_length(terms, 32, "id"), 0)


def decode_nonce_terms(terms: HexLike) -> bytes:
    return _expect_length(terms, 32, "nonce")


def decode_erc20_transfer_amount_terms(terms: HexLike) -> tuple[str, int]:
    """Return ``(token_address, max_amount)``."""
    raw = _expect_length(terms, 52, "erc20TransferAmount")
    return _address_at(raw, 0), _word(raw, 20)


def decode_erc721_transfer_terms(terms: HexLike) -> tuple[str, int]:
    """Return ``(token_address, token_id)``."""
    raw = _expect_length(terms, 52, "erc721Transfer")
    return _address_at(raw, 0), _word(raw, 20)


def decode_timestamp_terms(terms: HexLike) -> tuple[int, int]:
    """Return ``(after_threshold, before_threshold)``."""
    raw = _expect_length(terms, 32, "timestamp")
    return _word(raw, 0, 16), _word(raw, 16, 16)


def decode_block_number_terms(terms: HexLike) -> tuple[int, int]:
    """Return ``(block_after_threshold, block_before_threshold)``."""
    raw = _expect_length(terms, 32, "blockNumber")
    return _word(raw, 0, 16), _word(raw, 16, 16)


def decode_erc20_streaming_terms(terms: HexLike) -> StreamingTerms:
    raw = _expect_length(terms, 148, "erc20Streaming")
    return StreamingTerms(
        token_address=_address_at(raw, 0),
        initial_amount=_word(raw, 20),
        max_amount=_word(raw, 52),
        amount_per_second=_word(raw, 84),
        start_time=_word(raw, 116),
    )


def decode_native_token_streaming_terms(terms: HexLike) -> StreamingTerms:
    raw = _expect_length(terms, 128, "nativeTokenStreaming")
    return StreamingTerms(
        initial_amount=_word(raw, 0),
        max_amount=_word(raw, 32),
        amount_per_second=_word(raw, 64),
        start_time=_word(raw, 96),
    )


def decode_erc20_period_transfer_terms(terms: HexLike) -> PeriodTransferTerms:
    raw = _expect_length(terms, 116, "erc20PeriodTransfer")
    return PeriodTransferTerms(
        token_address=_address_at(raw, 0),
        period_amount=_word(raw, 20),
        period_duration=_word(raw, 52),
        start_date=_word(raw, 84),
    )


def decode_native_token_period_transfer_terms(terms: HexLike) -> PeriodTransferTerms:
    raw = _expect_length(terms, 96, "nativeTokenPeriodTransfer")
    return PeriodTransferTerms(
        period_amount=_word(raw, 0),
        period_duration=_word(raw, 32),
        start_date=_word(raw, 64),
    )


def decode_multi_token_period_terms(terms: HexLike) -> list[TokenPeriodConfig]:
    """Split terms into their 116-byte per-token blocks."""
    raw = to_bytes(terms, "terms")
    if not raw or len(raw) % 116:
        raise CaveatValidationError(
            f"Invalid multiTokenPeriod terms: length {len(raw)} is not a multiple of 116"
        )
    return [
        TokenPeriodConfig(
            token=_address_at(raw, offset),
            period_amount=_word(raw, offset + 20),
            period_duration=_word(raw, offset + 52),
            start_date=_word(raw, offset + 84),
        )
        for offset in range(0, len(raw), 116)
    ]


def decode_exact_execution_batch_terms(terms: HexLike) -> list[Execution]:
    """Decode ``(address,uint256,bytes)[]`` terms back into executions."""
    (items,) = decode([BATCH_EXECUTION_TYPE], to_bytes(terms, "terms"))
    return [Execution(target=t, value=v, call_data=d) for t, v, d in items]
