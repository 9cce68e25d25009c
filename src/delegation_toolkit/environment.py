"""SmartAccountsEnvironment: deployed contract addresses for one chain.

An environment maps the infrastructure roles (delegation manager, entry
point, factory) and every caveat enforcer contract name to a deployed
address. Environments are immutable values passed explicitly to every
encoder and resolver; :class:`EnvironmentRegistry` keeps one per
``(chain_id, version)`` pair and can be loaded from a JSON file.

File format
-----------
::

    {
      "environments": [
        {
          "chainId": 11155111,
          "version": "1.3.0",
          "DelegationManager": "0x...",
          "EntryPoint": "0x...",
          "SimpleFactory": "0x...",
          "implementations": {"HybridDeleGatorImpl": "0x..."},
          "caveatEnforcers": {"ValueLteEnforcer": "0x..."}
        }
      ]
    }
"""
from __future__ import annotations

import dataclasses
import json
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Optional

from eth_utils import is_address, to_checksum_address
from pydantic import BaseModel, ConfigDict, Field, field_validator

from delegation_toolkit.errors import (
    ConfigurationError,
    EnforcerNotFoundError,
    EnvironmentNotFoundError,
)

logger = logging.getLogger(__name__)

PREFERRED_VERSION: str = "1.3.0"


def _checksum_or_raise(value: str, role: str) -> str:
    if not is_address(value):
        raise ValueError(f"{role} must be a valid address, got {value!r}")
    return to_checksum_address(value)


# ------------------------------------------------------------------
# Environment value
# ------------------------------------------------------------------


@dataclass(frozen=True)
class SmartAccountsEnvironment:
    """Deployed contract addresses used to build and sign delegations.

    Parameters
    ----------
    delegation_manager:
        Address of the DelegationManager contract (the EIP-712 verifying
        contract for delegation signatures).
    caveat_enforcers:
        Mapping of enforcer contract name (e.g. ``"ValueLteEnforcer"``) to
        its deployed address.
    entry_point:
        Address of the ERC-4337 EntryPoint, if known.
    simple_factory:
        Address of the smart account factory, if known.
    implementations:
        Mapping of smart account implementation name to address.
    chain_id:
        Chain the addresses are deployed on, if known.
    """

    delegation_manager: str
    caveat_enforcers: Mapping[str, str] = field(default_factory=dict)
    entry_point: Optional[str] = None
    simple_factory: Optional[str] = None
    implementations: Mapping[str, str] = field(default_factory=dict)
    chain_id: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "delegation_manager",
            _checksum_or_raise(self.delegation_manager, "delegation_manager"),
        )
        object.__setattr__(
            self,
            "caveat_enforcers",
            MappingProxyType(
                {
                    name: _checksum_or_raise(address, name)
                    for name, address in self.caveat_enforcers.items()
                }
            ),
        )
        for role in ("entry_point", "simple_factory"):
            address = getattr(self, role)
            if address is not None:
                object.__setattr__(self, role, _checksum_or_raise(address, role))
        object.__setattr__(
            self,
            "implementations",
            MappingProxyType(
                {
                    name: _checksum_or_raise(address, name)
                    for name, address in self.implementations.items()
                }
            ),
        )

    def enforcer(self, name: str) -> str:
        """Return the address of the enforcer contract *name*.

        Raises
        ------
        EnforcerNotFoundError
            If the environment has no address for *name*.
        """
        try:
            return self.caveat_enforcers[name]
        except KeyError:
            raise EnforcerNotFoundError(name) from None

    def has_enforcer(self, name: str) -> bool:
        return name in self.caveat_enforcers

    def with_enforcers(self, overrides: Mapping[str, str]) -> "SmartAccountsEnvironment":
        """Return a copy with *overrides* merged into ``caveat_enforcers``."""
        merged = {**self.caveat_enforcers, **overrides}
        return dataclasses.replace(self, caveat_enforcers=merged)

    def to_dict(self) -> dict[str, object]:
        """Serialize to the camelCase file representation."""
        data: dict[str, object] = {
            "DelegationManager": self.delegation_manager,
            "EntryPoint": self.entry_point,
            "SimpleFactory": self.simple_factory,
            "implementations": dict(self.implementations),
            "caveatEnforcers": dict(self.caveat_enforcers),
        }
        if self.chain_id is not None:
            data["chainId"] = self.chain_id
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "SmartAccountsEnvironment":
        """Build an environment from its camelCase file representation.

        Raises
        ------
        ConfigurationError
            If the mapping fails validation.
        """
        try:
            model = EnvironmentModel.model_validate(dict(data))
        except ValueError as exc:
            raise ConfigurationError(f"Invalid environment: {exc}") from exc
        return model.to_environment()


# ------------------------------------------------------------------
# File models
# ------------------------------------------------------------------


class EnvironmentModel(BaseModel):
    """Validated file representation of a single environment."""

    model_config = ConfigDict(populate_by_name=True)

    chain_id: Optional[int] = Field(default=None, alias="chainId")
    version: str = PREFERRED_VERSION
    delegation_manager: str = Field(alias="DelegationManager")
    entry_point: Optional[str] = Field(default=None, alias="EntryPoint")
    simple_factory: Optional[str] = Field(default=None, alias="SimpleFactory")
    implementations: dict[str, str] = Field(default_factory=dict)
    caveat_enforcers: dict[str, str] = Field(
        default_factory=dict, alias="caveatEnforcers"
    )

    @field_validator("delegation_manager", "entry_point", "simple_factory")
    @classmethod
    def validate_role_address(cls, value: Optional[str]) -> Optional[str]:
        """Checksum infrastructure addresses."""
        if value is None:
            return value
        return _checksum_or_raise(value, "contract address")

    @field_validator("implementations", "caveat_enforcers")
    @classmethod
    def validate_address_map(cls, value: dict[str, str]) -> dict[str, str]:
        """Checksum every address in a name-to-address map."""
        return {name: _checksum_or_raise(addr, name) for name, addr in value.items()}

    def to_environment(self) -> SmartAccountsEnvironment:
        return SmartAccountsEnvironment(
            delegation_manager=self.delegation_manager,
            caveat_enforcers=self.caveat_enforcers,
            entry_point=self.entry_point,
            simple_factory=self.simple_factory,
            implementations=self.implementations,
            chain_id=self.chain_id,
        )


class EnvironmentFileModel(BaseModel):
    """Validated contents of an environment file."""

    environments: list[EnvironmentModel] = Field(default_factory=list)


# ------------------------------------------------------------------
# Registry
# ------------------------------------------------------------------


class EnvironmentRegistry:
    """Environments keyed by ``(chain_id, version)``.

    Registering an existing key replaces the stored environment, which is
    how locally deployed or forked contracts override a known deployment.

    Example
    -------
    ::

        registry = EnvironmentRegistry.from_file("environments.json")
        environment = registry.get(11155111)
    """

    def __init__(self) -> None:
        self._environments: dict[tuple[int, str], SmartAccountsEnvironment] = {}
        self._lock = threading.Lock()

    def register(
        self,
        chain_id: int,
        environment: SmartAccountsEnvironment,
        version: str = PREFERRED_VERSION,
    ) -> None:
        """Store *environment* for *chain_id* and *version*."""
        with self._lock:
            if (chain_id, version) in self._environments:
                logger.info(
                    "Overriding environment for chain %d version %s", chain_id, version
                )
            self._environments[(chain_id, version)] = environment

    def get(
        self, chain_id: int, version: str = PREFERRED_VERSION
    ) -> SmartAccountsEnvironment:
        """Return the environment for *chain_id* and *version*.

        Raises
        ------
        EnvironmentNotFoundError
            If nothing is registered for the key.
        """
        with self._lock:
            try:
                return self._environments[(chain_id, version)]
            except KeyError:
                raise EnvironmentNotFoundError(chain_id, version) from None

    def chain_ids(self) -> list[int]:
        """Return the registered chain ids in ascending order."""
        with self._lock:
            return sorted({chain_id for chain_id, _ in self._environments})

    def __len__(self) -> int:
        with self._lock:
            return len(self._environments)

    def __contains__(self, chain_id: object) -> bool:
        with self._lock:
            return any(key[0] == chain_id for key in self._environments)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "EnvironmentRegistry":
        """Build a registry from the parsed contents of an environment file.

        Raises
        ------
        ConfigurationError
            If the data fails validation or an entry has no ``chainId``.
        """
        try:
            parsed = EnvironmentFileModel.model_validate(dict(data))
        except ValueError as exc:
            raise ConfigurationError(f"Invalid environment file: {exc}") from exc

        registry = cls()
        for entry in parsed.environments:
            if entry.chain_id is None:
                raise ConfigurationError("Every environment entry needs a chainId.")
            registry.register(entry.chain_id, entry.to_environment(), entry.version)
        return registry

    @classmethod
    def from_file(cls, path: str | Path) -> "EnvironmentRegistry":
        """Load a registry from a JSON environment file."""
        file_path = Path(path)
        try:
            data = json.loads(file_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"{file_path} is not valid JSON: {exc}") from exc
        logger.debug("Loading environments from %s", file_path)
        return cls.from_dict(data)
