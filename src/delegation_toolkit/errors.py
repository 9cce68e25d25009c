"""Exception hierarchy for delegation-toolkit.

Every error raised by this package derives from :class:`DelegationToolkitError`
so callers can catch the whole family at once, while the subclasses let them
branch on configuration problems, invalid input, lookup ambiguity and the
unrestricted-delegation guard.
"""
from __future__ import annotations


class DelegationToolkitError(Exception):
    """Base class for all delegation-toolkit errors."""


# ------------------------------------------------------------------
# Configuration errors
# ------------------------------------------------------------------


class ConfigurationError(DelegationToolkitError):
    """Raised when the environment or a scope configuration is unusable."""


class EnforcerNotFoundError(ConfigurationError, KeyError):
    """Raised when an environment has no address for a caveat enforcer.

    Parameters
    ----------
    enforcer_name:
        The contract name that was looked up, e.g. ``"ValueLteEnforcer"``.
    """

    def __init__(self, enforcer_name: str) -> None:
        self.enforcer_name = enforcer_name
        super().__init__(f"{enforcer_name} not found in environment")

    def __str__(self) -> str:
        return self.args[0]


class EnvironmentNotFoundError(ConfigurationError, KeyError):
    """Raised when no environment is registered for a chain and version."""

    def __init__(self, chain_id: int, version: str) -> None:
        self.chain_id = chain_id
        self.version = version
        super().__init__(
            f"No contracts found for version {version} chain {chain_id}"
        )

    def __str__(self) -> str:
        return self.args[0]


class UnknownCaveatTypeError(ConfigurationError, KeyError):
    """Raised when a caveat builder is asked for an unregistered caveat type."""

    def __init__(self, caveat_type: str) -> None:
        self.caveat_type = caveat_type
        super().__init__(f'Function "{caveat_type}" does not exist.')

    def __str__(self) -> str:
        return self.args[0]


class InvalidScopeError(ConfigurationError, ValueError):
    """Raised when a scope configuration matches no known scope shape."""


class AmbiguousScopeError(InvalidScopeError):
    """Raised when a scope configuration matches more than one scope shape."""


# ------------------------------------------------------------------
# Validation errors
# ------------------------------------------------------------------


class CaveatValidationError(DelegationToolkitError, ValueError):
    """Raised when a caveat configuration fails validation."""


class DelegationDecodeError(DelegationToolkitError, ValueError):
    """Raised when an encoded delegation blob cannot be decoded."""


# ------------------------------------------------------------------
# Lookup errors
# ------------------------------------------------------------------


class CaveatNotFoundError(DelegationToolkitError, LookupError):
    """Raised when no caveat on a delegation uses the requested enforcer."""

    def __init__(self, enforcer: str) -> None:
        self.enforcer = enforcer
        super().__init__(f"No caveat found with enforcer matching {enforcer}")


class AmbiguousCaveatError(DelegationToolkitError, LookupError):
    """Raised when several caveats on a delegation use the requested enforcer."""

    def __init__(self, enforcer: str, count: int) -> None:
        self.enforcer = enforcer
        self.count = count
        super().__init__(
            f"Multiple caveats found with enforcer matching {enforcer} ({count} matches)"
        )


# ------------------------------------------------------------------
# Unsafe-operation guard
# ------------------------------------------------------------------


class UnrestrictedDelegationError(DelegationToolkitError):
    """Raised when a delegation without caveats would be built or signed.

    Set ``allow_insecure_unrestricted_delegation=True`` on the call that
    raised to opt in explicitly.
    """
