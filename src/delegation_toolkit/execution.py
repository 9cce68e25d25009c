"""Executions: the calls a delegation authorizes its delegate to make.

Single executions are packed as ``target ‖ value ‖ callData`` and batches
are ABI encoded as ``(address,uint256,bytes)[]``, matching the ERC-7579
execution call data read by the delegation manager.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

from eth_abi import encode
from eth_abi.packed import encode_packed

from delegation_toolkit.errors import CaveatValidationError
from delegation_toolkit.hexutils import HexLike, parse_uint, require_address, to_bytes, to_hex

BATCH_EXECUTION_TYPE: str = "(address,uint256,bytes)[]"


class ExecutionMode(str, Enum):
    """ERC-7579 execution modes (call type byte, exec type byte, zero padding)."""

    SINGLE_DEFAULT = "0x" + "00" * 32
    SINGLE_TRY = "0x0001" + "00" * 30
    BATCH_DEFAULT = "0x01" + "00" * 31
    BATCH_TRY = "0x0101" + "00" * 30

    @property
    def as_bytes(self) -> bytes:
        return bytes.fromhex(self.value[2:])


@dataclass(frozen=True)
class Execution:
    """A single call: ``target`` receives ``value`` wei with ``call_data``.

    Parameters
    ----------
    target:
        Address of the called account or contract.
    value:
        Native token amount in wei.
    call_data:
        Raw call data. Hex strings must carry the ``0x`` prefix.
    """

    target: str
    value: int = 0
    call_data: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "target", require_address(self.target, "target"))
        if isinstance(self.value, bool) or not isinstance(self.value, int) or self.value < 0:
            raise CaveatValidationError("Invalid value: must be a non-negative integer")
        if isinstance(self.call_data, str) and not self.call_data.startswith("0x"):
            raise CaveatValidationError("Invalid calldata: must be a hex string starting with 0x")
        object.__setattr__(self, "call_data", to_bytes(self.call_data, "calldata"))

    def as_tuple(self) -> tuple[str, int, bytes]:
        return (self.target, self.value, self.call_data)

    def to_dict(self) -> dict[str, object]:
        return {"target": self.target, "value": self.value, "callData": to_hex(self.call_data)}

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "Execution":
        """Build an Execution from a ``target``/``value``/``callData`` mapping.

        ``value`` may be an integer, a decimal string or a hex string.
        """
        if "target" not in data:
            raise CaveatValidationError("Invalid execution: missing field 'target'")
        call_data = data.get("callData", data.get("call_data", b""))
        return cls(
            target=data["target"],  # type: ignore[arg-type]
            value=parse_uint(data.get("value", 0), "value"),
            call_data=call_data,  # type: ignore[arg-type]
        )


def create_execution(target: str, value: int = 0, call_data: HexLike = "0x") -> Execution:
    """Convenience constructor with an empty call and zero value by default."""
    return Execution(target=target, value=value, call_data=call_data)  # type: ignore[arg-type]


# ------------------------------------------------------------------
# Encoding
# ------------------------------------------------------------------


def encode_single_execution(execution: Execution) -> bytes:
    """Pack one execution as ``address(20) ‖ uint256 value ‖ callData``."""
    return encode_packed(
        ["address", "uint256", "bytes"],
        [execution.target, execution.value, execution.call_data],
    )


def encode_batch_execution(executions: Sequence[Execution]) -> bytes:
    """ABI encode executions as ``(address,uint256,bytes)[]``."""
    return encode([BATCH_EXECUTION_TYPE], [[e.as_tuple() for e in executions]])


def encode_execution_calldata(executions: Sequence[Execution]) -> bytes:
    """Encode one execution list, packed when it holds exactly one call."""
    if len(executions) == 1:
        return encode_single_execution(executions[0])
    return encode_batch_execution(executions)


def encode_execution_calldatas(batches: Sequence[Sequence[Execution]]) -> list[bytes]:
    """Encode each execution list with :func:`encode_execution_calldata`."""
    return [encode_execution_calldata(executions) for executions in batches]


def execution_mode_for(executions: Sequence[Execution], try_mode: bool = False) -> ExecutionMode:
    """Return the mode matching how :func:`encode_execution_calldata` encodes *executions*."""
    if len(executions) == 1:
        return ExecutionMode.SINGLE_TRY if try_mode else ExecutionMode.SINGLE_DEFAULT
    return ExecutionMode.BATCH_TRY if try_mode else ExecutionMode.BATCH_DEFAULT
