"""Caveat record, caveat type enumeration and the enforcer name table."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum, IntEnum

from delegation_toolkit.errors import CaveatValidationError
from delegation_toolkit.hexutils import HexLike, require_address, to_bytes, to_hex


@dataclass(frozen=True)
class Caveat:
    """A single constraint attached to a delegation.

    Parameters
    ----------
    enforcer:
        Address of the enforcer contract that interprets ``terms``.
    terms:
        Packed, enforcer-specific constraint bytes. Hex strings are accepted.
    args:
        Redemption-time arguments, usually empty. Not part of the signed
        delegation hash.
    """

    enforcer: str
    terms: bytes
    args: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "enforcer", require_address(self.enforcer, "enforcer"))
        object.__setattr__(self, "terms", to_bytes(self.terms, "terms"))
        object.__setattr__(self, "args", to_bytes(self.args, "args"))

    def to_dict(self) -> dict[str, str]:
        """Serialize to a JSON-friendly dictionary of hex strings."""
        return {
            "enforcer": self.enforcer,
            "terms": to_hex(self.terms),
            "args": to_hex(self.args),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, HexLike]) -> "Caveat":
        """Reconstruct a Caveat from :meth:`to_dict` output."""
        missing = sorted({"enforcer", "terms"} - set(data))
        if missing:
            raise CaveatValidationError(f"Invalid caveat: missing fields {missing}")
        return cls(
            enforcer=data["enforcer"],  # type: ignore[arg-type]
            terms=data["terms"],  # type: ignore[arg-type]
            args=data.get("args", b""),  # type: ignore[arg-type]
        )


class BalanceChangeType(IntEnum):
    """Direction checked by the balance change enforcers."""

    INCREASE = 0
    DECREASE = 1


class CaveatType(str, Enum):
    """Caveat kinds understood by the core caveat builder."""

    ALLOWED_METHODS = "allowedMethods"
    ALLOWED_TARGETS = "allowedTargets"
    DEPLOYED = "deployed"
    ALLOWED_CALLDATA = "allowedCalldata"
    ERC20_BALANCE_CHANGE = "erc20BalanceChange"
    ERC721_BALANCE_CHANGE = "erc721BalanceChange"
    ERC1155_BALANCE_CHANGE = "erc1155BalanceChange"
    VALUE_LTE = "valueLte"
    LIMITED_CALLS = "limitedCalls"
    ID = "id"
    NONCE = "nonce"
    TIMESTAMP = "timestamp"
    BLOCK_NUMBER = "blockNumber"
    ERC20_TRANSFER_AMOUNT = "erc20TransferAmount"
    ERC20_STREAMING = "erc20Streaming"
    NATIVE_TOKEN_STREAMING = "nativeTokenStreaming"
    ERC721_TRANSFER = "erc721Transfer"
    NATIVE_TOKEN_TRANSFER_AMOUNT = "nativeTokenTransferAmount"
    NATIVE_BALANCE_CHANGE = "nativeBalanceChange"
    REDEEMER = "redeemer"
    NATIVE_TOKEN_PAYMENT = "nativeTokenPayment"
    ARGS_EQUALITY_CHECK = "argsEqualityCheck"
    SPECIFIC_ACTION_ERC20_TRANSFER_BATCH = "specificActionERC20TransferBatch"
    ERC20_PERIOD_TRANSFER = "erc20PeriodTransfer"
    NATIVE_TOKEN_PERIOD_TRANSFER = "nativeTokenPeriodTransfer"
    EXACT_CALLDATA_BATCH = "exactCalldataBatch"
    EXACT_CALLDATA = "exactCalldata"
    EXACT_EXECUTION = "exactExecution"
    EXACT_EXECUTION_BATCH = "exactExecutionBatch"
    MULTI_TOKEN_PERIOD = "multiTokenPeriod"
    OWNERSHIP_TRANSFER = "ownershipTransfer"

    @property
    def enforcer_name(self) -> str:
        """Contract name of the enforcer for this caveat kind."""
        return ENFORCER_NAMES[self]


ENFORCER_NAMES: dict[CaveatType, str] = {
    CaveatType.ALLOWED_METHODS: "AllowedMethodsEnforcer",
    CaveatType.ALLOWED_TARGETS: "AllowedTargetsEnforcer",
    CaveatType.DEPLOYED: "DeployedEnforcer",
    CaveatType.ALLOWED_CALLDATA: "AllowedCalldataEnforcer",
    CaveatType.ERC20_BALANCE_CHANGE: "ERC20BalanceChangeEnforcer",
    CaveatType.ERC721_BALANCE_CHANGE: "ERC721BalanceChangeEnforcer",
    CaveatType.ERC1155_BALANCE_CHANGE: "ERC1155BalanceChangeEnforcer",
    CaveatType.VALUE_LTE: "ValueLteEnforcer",
    CaveatType.LIMITED_CALLS: "LimitedCallsEnforcer",
    CaveatType.ID: "IdEnforcer",
    CaveatType.NONCE: "NonceEnforcer",
    CaveatType.TIMESTAMP: "TimestampEnforcer",
    CaveatType.BLOCK_NUMBER: "BlockNumberEnforcer",
    CaveatType.ERC20_TRANSFER_AMOUNT: "ERC20TransferAmountEnforcer",
    CaveatType.ERC20_STREAMING: "ERC20StreamingEnforcer",
    CaveatType.NATIVE_TOKEN_STREAMING: "NativeTokenStreamingEnforcer",
    CaveatType.ERC721_TRANSFER: "ERC721TransferEnforcer",
    CaveatType.NATIVE_TOKEN_TRANSFER_AMOUNT: "NativeTokenTransferAmountEnforcer",
    CaveatType.NATIVE_BALANCE_CHANGE: "NativeBalanceChangeEnforcer",
    CaveatType.REDEEMER: "RedeemerEnforcer",
    CaveatType.NATIVE_TOKEN_PAYMENT: "NativeTokenPaymentEnforcer",
    CaveatType.ARGS_EQUALITY_CHECK: "ArgsEqualityCheckEnforcer",
    CaveatType.SPECIFIC_ACTION_ERC20_TRANSFER_BATCH: "SpecificActionERC20TransferBatchEnforcer",
    CaveatType.ERC20_PERIOD_TRANSFER: "ERC20PeriodTransferEnforcer",
    CaveatType.NATIVE_TOKEN_PERIOD_TRANSFER: "NativeTokenPeriodTransferEnforcer",
    CaveatType.EXACT_CALLDATA_BATCH: "ExactCalldataBatchEnforcer",
    CaveatType.EXACT_CALLDATA: "ExactCalldataEnforcer",
    CaveatType.EXACT_EXECUTION: "ExactExecutionEnforcer",
    CaveatType.EXACT_EXECUTION_BATCH: "ExactExecutionBatchEnforcer",
    CaveatType.MULTI_TOKEN_PERIOD: "MultiTokenPeriodEnforcer",
    CaveatType.OWNERSHIP_TRANSFER: "OwnershipTransferEnforcer",
}


class TransferWindow(IntEnum):
    """Common period durations, in seconds, for periodic transfer caveats."""

    HOURLY = 3600
    DAILY = 86400
    WEEKLY = 604800
    BI_WEEKLY = 1209600
    MONTHLY = 2592000
    QUARTERLY = 7776000
    YEARLY = 31536000
