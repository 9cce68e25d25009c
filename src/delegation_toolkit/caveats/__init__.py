"""Caveat records, encoders and the caveat builder."""
from __future__ import annotations

from delegation_toolkit.caveats.builder import (
    CaveatBuilder,
    create_caveat_builder,
    snake_case_config,
)
from delegation_toolkit.caveats.encoders import CORE_ENCODERS, CaveatEncoder
from delegation_toolkit.caveats.terms import (
    TIMESTAMP_UPPER_BOUND_SECONDS,
    PeriodTransferTerms,
    StreamingTerms,
    TokenPeriodConfig,
)
from delegation_toolkit.caveats.types import (
    ENFORCER_NAMES,
    BalanceChangeType,
    Caveat,
    CaveatType,
    TransferWindow,
)

__all__ = [
    "BalanceChangeType",
    "CORE_ENCODERS",
    "Caveat",
    "CaveatBuilder",
    "CaveatEncoder",
    "CaveatType",
    "ENFORCER_NAMES",
    "PeriodTransferTerms",
    "StreamingTerms",
    "TIMESTAMP_UPPER_BOUND_SECONDS",
    "TokenPeriodConfig",
    "TransferWindow",
    "create_caveat_builder",
    "snake_case_config",
]
