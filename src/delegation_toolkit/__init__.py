"""delegation-toolkit: caveat composition, EIP-712 hashing and ABI encoding for smart account delegations.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import delegation_toolkit
>>> delegation_toolkit.__version__
'0.1.0'

Quick start
-----------
::

    from delegation_toolkit import (
        SmartAccountsEnvironment, Erc20TransferScope, create_delegation,
        LocalAccountSigner, sign_delegation, encode_delegations,
    )

    environment = SmartAccountsEnvironment.from_dict(deployment)
    delegation = create_delegation(
        delegate, delegator,
        environment=environment,
        scope=Erc20TransferScope(token_address=token, max_amount=100),
    )
    signature = sign_delegation(
        LocalAccountSigner.from_key(key), delegation,
        environment.delegation_manager, chain_id,
    )
    context = encode_delegations([delegation.with_signature(signature)])
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ------------------------------------------------------------------
# Configuration and errors
# ------------------------------------------------------------------
from delegation_toolkit.environment import (
    PREFERRED_VERSION,
    EnvironmentRegistry,
    SmartAccountsEnvironment,
)
from delegation_toolkit.errors import (
    AmbiguousCaveatError,
    AmbiguousScopeError,
    CaveatNotFoundError,
    CaveatValidationError,
    ConfigurationError,
    DelegationDecodeError,
    DelegationToolkitError,
    EnforcerNotFoundError,
    EnvironmentNotFoundError,
    InvalidScopeError,
    UnknownCaveatTypeError,
    UnrestrictedDelegationError,
)

# ------------------------------------------------------------------
# Caveats
# ------------------------------------------------------------------
from delegation_toolkit.caveats import (
    BalanceChangeType,
    Caveat,
    CaveatBuilder,
    CaveatType,
    TokenPeriodConfig,
    TransferWindow,
    create_caveat_builder,
)

# ------------------------------------------------------------------
# Scopes
# ------------------------------------------------------------------
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
    ScopeConfig,
    create_caveat_builder_from_scope,
    resolve_caveats,
    scope_from_dict,
)

# ------------------------------------------------------------------
# Delegations
# ------------------------------------------------------------------
from delegation_toolkit.delegation import (
    ANY_BENEFICIARY,
    ROOT_AUTHORITY,
    Delegation,
    LocalAccountSigner,
    TypedDataSigner,
    create_delegation,
    create_open_delegation,
    decode_delegations,
    decode_permission_contexts,
    delegation_digest,
    delegation_typed_data,
    domain_separator,
    encode_delegations,
    encode_permission_contexts,
    find_caveat,
    hash_delegation,
    recover_delegation_signer,
    resolve_authority,
    sign_delegation,
)

# ------------------------------------------------------------------
# Executions and DelegationManager call data
# ------------------------------------------------------------------
from delegation_toolkit.execution import (
    Execution,
    ExecutionMode,
    create_execution,
    encode_batch_execution,
    encode_execution_calldata,
    encode_execution_calldatas,
    encode_single_execution,
)
from delegation_toolkit.manager import (
    encode_disable_delegation,
    encode_enable_delegation,
    encode_redeem_delegations,
)

# ------------------------------------------------------------------
# Enforcer queries
# ------------------------------------------------------------------
from delegation_toolkit.enforcers import (
    CaveatEnforcerClient,
    ContractReader,
    PeriodTransferResult,
    StreamingResult,
    Web3ContractReader,
)

__all__ = [
    "__version__",
    # Configuration
    "PREFERRED_VERSION",
    "EnvironmentRegistry",
    "SmartAccountsEnvironment",
    # Errors
    "AmbiguousCaveatError",
    "AmbiguousScopeError",
    "CaveatNotFoundError",
    "CaveatValidationError",
    "ConfigurationError",
    "DelegationDecodeError",
    "DelegationToolkitError",
    "EnforcerNotFoundError",
    "EnvironmentNotFoundError",
    "InvalidScopeError",
    "UnknownCaveatTypeError",
    "UnrestrictedDelegationError",
    # Caveats
    "BalanceChangeType",
    "Caveat",
    "CaveatBuilder",
    "CaveatType",
    "TokenPeriodConfig",
    "TransferWindow",
    "create_caveat_builder",
    # Scopes
    "AllowedCalldata",
    "Erc20PeriodicScope",
    "Erc20StreamingScope",
    "Erc20TransferBatchScope",
    "Erc20TransferScope",
    "Erc721Scope",
    "FunctionCallScope",
    "NativeTokenPeriodicScope",
    "NativeTokenStreamingScope",
    "NativeTokenTransferScope",
    "OwnershipScope",
    "ScopeConfig",
    "create_caveat_builder_from_scope",
    "resolve_caveats",
    "scope_from_dict",
    # Delegations
    "ANY_BENEFICIARY",
    "ROOT_AUTHORITY",
    "Delegation",
    "LocalAccountSigner",
    "TypedDataSigner",
    "create_delegation",
    "create_open_delegation",
    "decode_delegations",
    "decode_permission_contexts",
    "delegation_digest",
    "delegation_typed_data",
    "domain_separator",
    "encode_delegations",
    "encode_permission_contexts",
    "find_caveat",
    "hash_delegation",
    "recover_delegation_signer",
    "resolve_authority",
    "sign_delegation",
    # Executions
    "Execution",
    "ExecutionMode",
    "create_execution",
    "encode_batch_execution",
    "encode_execution_calldata",
    "encode_execution_calldatas",
    "encode_single_execution",
    "encode_disable_delegation",
    "encode_enable_delegation",
    "encode_redeem_delegations",
    # Enforcer queries
    "CaveatEnforcerClient",
    "ContractReader",
    "PeriodTransferResult",
    "StreamingResult",
    "Web3ContractReader",
]
