"""Caveat encoders: ``(environment, **config) -> Caveat`` for each core kind.

Every encoder validates its configuration through the matching
``create_*_terms`` function before it looks up the enforcer address, so a
bad configuration is reported even when the environment is incomplete.
"""
from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence

from delegation_toolkit.caveats import terms as t
from delegation_toolkit.caveats.types import Caveat, CaveatType
from delegation_toolkit.environment import SmartAccountsEnvironment
from delegation_toolkit.execution import Execution
from delegation_toolkit.hexutils import HexLike

CaveatEncoder = Callable[..., Caveat]


def _caveat(environment: SmartAccountsEnvironment, caveat_type: CaveatType, terms: bytes) -> Caveat:
    return Caveat(enforcer=environment.enforcer(caveat_type.enforcer_name), terms=terms)


# ------------------------------------------------------------------
# Value and amount caveats
# ------------------------------------------------------------------


def value_lte(environment: SmartAccountsEnvironment, *, max_value: int) -> Caveat:
    """Limit the native value of each call to at most *max_value* wei."""
    return _caveat(environment, CaveatType.VALUE_LTE, t.create_value_lte_terms(max_value))


def erc20_transfer_amount(
    environment: SmartAccountsEnvironment, *, token_address: str, max_amount: int
) -> Caveat:
    """Limit cumulative ERC-20 ``transfer`` calls to *max_amount* of *token_address*."""
    return _caveat(
        environment,
        CaveatType.ERC20_TRANSFER_AMOUNT,
        t.create_erc20_transfer_amount_terms(token_address, max_amount),
    )


def native_token_transfer_amount(
    environment: SmartAccountsEnvironment, *, max_amount: int
) -> Caveat:
    return _caveat(
        environment,
        CaveatType.NATIVE_TOKEN_TRANSFER_AMOUNT,
        t.create_native_token_transfer_amount_terms(max_amount),
    )


def erc721_transfer(
    environment: SmartAccountsEnvironment, *, token_address: str, token_id: int
) -> Caveat:
    """Permit transferring only token *token_id* of the ERC-721 *token_address*."""
    return _caveat(
        environment,
        CaveatType.ERC721_TRANSFER,
        t.create_erc721_transfer_terms(token_address, token_id),
    )


def native_token_payment(
    environment: SmartAccountsEnvironment, *, recipient: str, amount: int
) -> Caveat:
    """Require a native token payment of *amount* to *recipient* on redemption."""
    return _caveat(
        environment,
        CaveatType.NATIVE_TOKEN_PAYMENT,
        t.create_native_token_payment_terms(recipient, amount),
    )


def specific_action_erc20_transfer_batch(
    environment: SmartAccountsEnvironment,
    *,
    token_address: str,
    recipient: str,
    amount: int,
    target: str,
    calldata: HexLike,
) -> Caveat:
    """Require a two-call batch: an exact call to *target*, then an ERC-20 transfer."""
    return _caveat(
        environment,
        CaveatType.SPECIFIC_ACTION_ERC20_TRANSFER_BATCH,
        t.create_specific_action_erc20_transfer_batch_terms(
            token_address, recipient, amount, target, calldata
        ),
    )


# ------------------------------------------------------------------
# Balance change caveats
# ------------------------------------------------------------------


def erc20_balance_change(
    environment: SmartAccountsEnvironment,
    *,
    token_address: str,
    recipient: str,
    balance: int,
    change_type: int,
) -> Caveat:
    return _caveat(
        environment,
        CaveatType.ERC20_BALANCE_CHANGE,
        t.create_erc20_balance_change_terms(token_address, recipient, balance, change_type),
    )


def erc721_balance_change(
    environment: SmartAccountsEnvironment,
    *,
    token_address: str,
    recipient: str,
    amount: int,
    change_type: int,
) -> Caveat:
    return _caveat(
        environment,
        CaveatType.ERC721_BALANCE_CHANGE,
        t.create_erc721_balance_change_terms(token_address, recipient, amount, change_type),
    )


def erc1155_balance_change(
    environment: SmartAccountsEnvironment,
    *,
    token_address: str,
    recipient: str,
    token_id: int,
    balance: int,
    change_type: int,
) -> Caveat:
    return _caveat(
        environment,
        CaveatType.ERC1155_BALANCE_CHANGE,
        t.create_erc1155_balance_change_terms(
            token_address, recipient, token_id, balance, change_type
        ),
    )


def native_balance_change(
    environment: SmartAccountsEnvironment,
    *,
    recipient: str,
    balance: int,
    change_type: int,
) -> Caveat:
    return _caveat(
        environment,
        CaveatType.NATIVE_BALANCE_CHANGE,
        t.create_native_balance_change_terms(recipient, balance, change_type),
    )


# ------------------------------------------------------------------
# Streaming and periodic allowances
# ------------------------------------------------------------------


def erc20_streaming(
    environment: SmartAccountsEnvironment,
    *,
    token_address: str,
    initial_amount: int,
    max_amount: int,
    amount_per_second: int,
    start_time: int,
) -> Caveat:
    """Unlock *initial_amount* at *start_time*, then *amount_per_second*, capped at *max_amount*."""
    return _caveat(
        environment,
        CaveatType.ERC20_STREAMING,
        t.create_erc20_streaming_terms(
            token_address, initial_amount, max_amount, amount_per_second, start_time
        ),
    )


def native_token_streaming(
    environment: SmartAccountsEnvironment,
    *,
    initial_amount: int,
    max_amount: int,
    amount_per_second: int,
    start_time: int,
) -> Caveat:
    return _caveat(
        environment,
        CaveatType.NATIVE_TOKEN_STREAMING,
        t.create_native_token_streaming_terms(
            initial_amount, max_amount, amount_per_second, start_time
        ),
    )


def erc20_period_transfer(
    environment: SmartAccountsEnvironment,
    *,
    token_address: str,
    period_amount: int,
    period_duration: int,
    start_date: int,
) -> Caveat:
    """Allow *period_amount* per *period_duration* seconds, starting at *start_date*."""
    return _caveat(
        environment,
        CaveatType.ERC20_PERIOD_TRANSFER,
        t.create_erc20_period_transfer_terms(
            token_address, period_amount, period_duration, start_date
        ),
    )


def native_token_period_transfer(
    environment: SmartAccountsEnvironment,
    *,
    period_amount: int,
    period_duration: int,
    start_date: int,
) -> Caveat:
    return _caveat(
        environment,
        CaveatType.NATIVE_TOKEN_PERIOD_TRANSFER,
        t.create_native_token_period_transfer_terms(period_amount, period_duration, start_date),
    )


def multi_token_period(
    environment: SmartAccountsEnvironment,
    *,
    token_configs: Sequence[t.TokenPeriodConfig | Mapping[str, object]],
) -> Caveat:
    """Periodic allowances for several tokens in one caveat."""
    return _caveat(
        environment,
        CaveatType.MULTI_TOKEN_PERIOD,
        t.create_multi_token_period_terms(token_configs),
    )


# ------------------------------------------------------------------
# Time and counter caveats
# ------------------------------------------------------------------


def timestamp(
    environment: SmartAccountsEnvironment, *, after_threshold: int, before_threshold: int
) -> Caveat:
    """Restrict redemption to a window of unix timestamps (zero leaves a bound open)."""
    return _caveat(
        environment,
        CaveatType.TIMESTAMP,
        t.create_timestamp_terms(after_threshold, before_threshold),
    )


def block_number(
    environment: SmartAccountsEnvironment,
    *,
    block_after_threshold: int,
    block_before_threshold: int,
) -> Caveat:
    """Restrict redemption to a window of block numbers (zero leaves a bound open)."""
    return _caveat(
        environment,
        CaveatType.BLOCK_NUMBER,
        t.create_block_number_terms(block_after_threshold, block_before_threshold),
    )


def limited_calls(environment: SmartAccountsEnvironment, *, limit: int) -> Caveat:
    return _caveat(environment, CaveatType.LIMITED_CALLS, t.create_limited_calls_terms(limit))


def id_caveat(environment: SmartAccountsEnvironment, *, id_value: int) -> Caveat:
    """Group delegations under *id_value*; redeeming one invalidates the rest."""
    return _caveat(environment, CaveatType.ID, t.create_id_terms(id_value))


def nonce(environment: SmartAccountsEnvironment, *, nonce: HexLike) -> Caveat:
    """Bind the delegation to the delegator's current enforcer nonce."""
    return _caveat(environment, CaveatType.NONCE, t.create_nonce_terms(nonce))


# ------------------------------------------------------------------
# Call restriction caveats
# ------------------------------------------------------------------


def allowed_methods(
    environment: SmartAccountsEnvironment, *, selectors: Sequence[t.MethodSelector]
) -> Caveat:
    """Permit only calls whose selector is in *selectors*."""
    return _caveat(
        environment, CaveatType.ALLOWED_METHODS, t.create_allowed_methods_terms(selectors)
    )


def allowed_targets(environment: SmartAccountsEnvironment, *, targets: Sequence[str]) -> Caveat:
    """Permit only calls to the addresses in *targets*."""
    return _caveat(
        environment, CaveatType.ALLOWED_TARGETS, t.create_allowed_targets_terms(targets)
    )


def allowed_calldata(
    environment: SmartAccountsEnvironment, *, start_index: int, value: HexLike
) -> Caveat:
    """Require call data to contain *value* at byte offset *start_index*."""
    return _caveat(
        environment,
        CaveatType.ALLOWED_CALLDATA,
        t.create_allowed_calldata_terms(start_index, value),
    )


def exact_calldata(environment: SmartAccountsEnvironment, *, calldata: HexLike) -> Caveat:
    return _caveat(environment, CaveatType.EXACT_CALLDATA, t.create_exact_calldata_terms(calldata))


def exact_calldata_batch(
    environment: SmartAccountsEnvironment,
    *,
    executions: Sequence[Execution | Mapping[str, object]],
) -> Caveat:
    return _caveat(
        environment,
        CaveatType.EXACT_CALLDATA_BATCH,
        t.create_exact_calldata_batch_terms(executions),
    )


def exact_execution(
    environment: SmartAccountsEnvironment, *, execution: Execution | Mapping[str, object]
) -> Caveat:
    return _caveat(
        environment, CaveatType.EXACT_EXECUTION, t.create_exact_execution_terms(execution)
    )


def exact_execution_batch(
    environment: SmartAccountsEnvironment,
    *,
    executions: Sequence[Execution | Mapping[str, object]],
) -> Caveat:
    return _caveat(
        environment,
        CaveatType.EXACT_EXECUTION_BATCH,
        t.create_exact_execution_batch_terms(executions),
    )


def args_equality_check(environment: SmartAccountsEnvironment, *, args: HexLike) -> Caveat:
    """Require the redemption args to equal *args* exactly."""
    return _caveat(
        environment, CaveatType.ARGS_EQUALITY_CHECK, t.create_args_equality_check_terms(args)
    )


def deployed(
    environment: SmartAccountsEnvironment,
    *,
    contract_address: str,
    salt: HexLike,
    bytecode: HexLike,
) -> Caveat:
    """Deploy *bytecode* with CREATE2 *salt* at *contract_address* if it is missing."""
    return _caveat(
        environment,
        CaveatType.DEPLOYED,
        t.create_deployed_terms(contract_address, salt, bytecode),
    )


def redeemer(environment: SmartAccountsEnvironment, *, redeemers: Sequence[str]) -> Caveat:
    """Restrict who may redeem the delegation."""
    return _caveat(environment, CaveatType.REDEEMER, t.create_redeemer_terms(redeemers))


def ownership_transfer(
    environment: SmartAccountsEnvironment, *, contract_address: str
) -> Caveat:
    return _caveat(
        environment,
        CaveatType.OWNERSHIP_TRANSFER,
        t.create_ownership_transfer_terms(contract_address),
    )


CORE_ENCODERS: dict[CaveatType, CaveatEncoder] = {
    CaveatType.ALLOWED_METHODS: allowed_methods,
    CaveatType.ALLOWED_TARGETS: allowed_targets,
    CaveatType.DEPLOYED: deployed,
    CaveatType.ALLOWED_CALLDATA: allowed_calldata,
    CaveatType.ERC20_BALANCE_CHANGE: erc20_balance_change,
    CaveatType.ERC721_BALANCE_CHANGE: erc721_balance_change,
    CaveatType.ERC1155_BALANCE_CHANGE: erc1155_balance_change,
    CaveatType.VALUE_LTE: value_lte,
    CaveatType.LIMITED_CALLS: limited_calls,
    CaveatType.ID: id_caveat,
    CaveatType.NONCE: nonce,
    CaveatType.TIMESTAMP: timestamp,
    CaveatType.BLOCK_NUMBER: block_number,
    CaveatType.ERC20_TRANSFER_AMOUNT: erc20_transfer_amount,
    CaveatType.ERC20_STREAMING: erc20_streaming,
    CaveatType.NATIVE_TOKEN_STREAMING: native_token_streaming,
    CaveatType.ERC721_TRANSFER: erc721_transfer,
    CaveatType.NATIVE_TOKEN_TRANSFER_AMOUNT: native_token_transfer_amount,
    CaveatType.NATIVE_BALANCE_CHANGE: native_balance_change,
    CaveatType.REDEEMER: redeemer,
    CaveatType.NATIVE_TOKEN_PAYMENT: native_token_payment,
    CaveatType.ARGS_EQUALITY_CHECK: args_equality_check,
    CaveatType.SPECIFIC_ACTION_ERC20_TRANSFER_BATCH: specific_action_erc20_transfer_batch,
    CaveatType.ERC20_PERIOD_TRANSFER: erc20_period_transfer,
    CaveatType.NATIVE_TOKEN_PERIOD_TRANSFER: native_token_period_transfer,
    CaveatType.EXACT_CALLDATA_BATCH: exact_calldata_batch,
    CaveatType.EXACT_CALLDATA: exact_calldata,
    CaveatType.EXACT_EXECUTION: exact_execution,
    CaveatType.EXACT_EXECUTION_BATCH: exact_execution_batch,
    CaveatType.MULTI_TOKEN_PERIOD: multi_token_period,
    CaveatType.OWNERSHIP_TRANSFER: ownership_transfer,
}
