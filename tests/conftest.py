from __future__ import annotations

import pytest

from delegation_toolkit.environment import SmartAccountsEnvironment
from support import DELEGATION_MANAGER, build_environment


@pytest.fixture()
def environment() -> SmartAccountsEnvironment:
    return build_environment()


@pytest.fixture()
def empty_environment() -> SmartAccountsEnvironment:
    return SmartAccountsEnvironment(delegation_manager=DELEGATION_MANAGER)
