"""CaveatBuilder: ordered accumulation of caveats through registered encoders.

A builder owns a mapping of caveat type name to encoder and a list of
caveats in insertion order. ``add_caveat`` either runs an encoder or
appends a pre-built caveat; ``build`` returns a snapshot of the list.
Caveat order is the order the delegation manager evaluates enforcers in,
so the builder never reorders, merges or deduplicates.

A builder instance is not safe to mutate from several threads at once.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Union

from delegation_toolkit.caveats.encoders import CORE_ENCODERS, CaveatEncoder
from delegation_toolkit.caveats.types import Caveat, CaveatType
from delegation_toolkit.environment import SmartAccountsEnvironment
from delegation_toolkit.errors import (
    CaveatValidationError,
    UnknownCaveatTypeError,
    UnrestrictedDelegationError,
)

logger = logging.getLogger(__name__)

CaveatName = Union[CaveatType, str]

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _type_name(name: CaveatName) -> str:
    return name.value if isinstance(name, CaveatType) else name


def snake_case_config(config: Mapping[str, object]) -> dict[str, object]:
    """Convert camelCase configuration keys (``maxAmount``) to keyword names (``max_amount``)."""
    return {_CAMEL_BOUNDARY.sub("_", key).lower(): value for key, value in config.items()}


class CaveatBuilder:
    """Accumulates caveats for a single delegation.

    Parameters
    ----------
    environment:
        Contract addresses handed to every encoder.
    allow_insecure_unrestricted_delegation:
        When True, :meth:`build` returns an empty list instead of raising.
    encoders:
        Initial mapping of caveat type name to encoder function.

    Example
    -------
    ::

        builder = create_caveat_builder(environment)
        caveats = (
            builder.add_caveat("valueLte", max_value=0)
            .add_caveat("erc20TransferAmount", token_address=token, max_amount=100)
            .build()
        )
    """

    def __init__(
        self,
        environment: SmartAccountsEnvironment,
        allow_insecure_unrestricted_delegation: bool = False,
        encoders: Mapping[CaveatName, CaveatEncoder] | None = None,
    ) -> None:
        self._environment = environment
        self._allow_insecure_unrestricted_delegation = allow_insecure_unrestricted_delegation
        self._encoders: dict[str, CaveatEncoder] = {
            _type_name(name): encoder for name, encoder in (encoders or {}).items()
        }
        self._caveats: list[Caveat] = []

    @property
    def environment(self) -> SmartAccountsEnvironment:
        return self._environment

    @property
    def registered_types(self) -> list[str]:
        """Names of the caveat types this builder can encode."""
        return list(self._encoders)

    def __len__(self) -> int:
        return len(self._caveats)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def extend(self, name: CaveatName, encoder: CaveatEncoder) -> "CaveatBuilder":
        """Return a new builder that also knows the caveat type *name*.

        The new builder starts with this builder's caveats and encoders.
        Re-registering an existing name replaces its encoder in the new
        builder; this builder is left unchanged.
        """
        extended = CaveatBuilder(
            self._environment,
            self._allow_insecure_unrestricted_delegation,
            {**self._encoders, _type_name(name): encoder},
        )
        extended._caveats = list(self._caveats)
        return extended

    # ------------------------------------------------------------------
    # Accumulation
    # ------------------------------------------------------------------

    def add_caveat(
        self,
        name_or_caveat: CaveatName | Caveat | Mapping[str, object],
        **config: object,
    ) -> "CaveatBuilder":
        """Append a caveat and return this builder.

        Parameters
        ----------
        name_or_caveat:
            A registered caveat type name, in which case *config* is passed
            to its encoder; or a pre-built :class:`Caveat` (or a mapping with
            ``enforcer``, ``terms`` and ``args``), appended as-is.
        **config:
            Keyword configuration for the encoder.

        Raises
        ------
        UnknownCaveatTypeError
            If *name_or_caveat* names an unregistered caveat type.
        CaveatValidationError
            If *config* does not fit the encoder or fails validation.
        TypeError
            If a raw caveat is combined with *config* or has the wrong shape.
        """
        if isinstance(name_or_caveat, (Caveat, Mapping)):
            if config:
                raise TypeError("Configuration cannot be combined with a raw caveat.")
            caveat = self._raw_caveat(name_or_caveat)
            self._caveats.append(caveat)
            logger.debug("Added raw caveat for enforcer %s", caveat.enforcer)
            return self

        if not isinstance(name_or_caveat, str):
            raise TypeError(
                f"Expected a caveat type name or a Caveat, got {type(name_or_caveat).__name__}"
            )

        type_name = _type_name(name_or_caveat)
        encoder = self._encoders.get(type_name)
        if encoder is None:
            raise UnknownCaveatTypeError(type_name)

        try:
            caveat = encoder(self._environment, **config)
        except TypeError as exc:
            raise CaveatValidationError(f"Invalid {type_name} configuration: {exc}") from exc
        self._caveats.append(caveat)
        logger.debug("Added %s caveat for enforcer %s", type_name, caveat.enforcer)
        return self

    def build(self) -> list[Caveat]:
        """Return the accumulated caveats in insertion order.

        Raises
        ------
        UnrestrictedDelegationError
            If no caveat was added and the builder does not allow an
            unrestricted delegation.
        """
        if not self._caveats and not self._allow_insecure_unrestricted_delegation:
            raise UnrestrictedDelegationError(
                "No caveats found. If you definitely want to create an empty caveat "
                "collection, set `allow_insecure_unrestricted_delegation` to True."
            )
        return list(self._caveats)

    @staticmethod
    def _raw_caveat(value: Caveat | Mapping[str, object]) -> Caveat:
        if isinstance(value, Caveat):
            return value
        missing = {"enforcer", "terms", "args"} - set(value)
        if missing:
            raise TypeError(f"Raw caveat is missing fields: {sorted(missing)}")
        return Caveat.from_dict(value)  # type: ignore[arg-type]


def create_caveat_builder(
    environment: SmartAccountsEnvironment,
    allow_insecure_unrestricted_delegation: bool = False,
) -> CaveatBuilder:
    """Return a builder with every :class:`CaveatType` registered."""
    return CaveatBuilder(
        environment,
        allow_insecure_unrestricted_delegation=allow_insecure_unrestricted_delegation,
        encoders=CORE_ENCODERS,
    )
