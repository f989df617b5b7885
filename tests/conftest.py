"""
Test configuration and fixtures
"""
import sys
from pathlib import Path

# Add src to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

import pytest

from lockup import ERC20Token, SimpleLockup

OWNER = "0x" + "a" * 40
BENEFICIARY = "0x" + "b" * 40
OTHER = "0x" + "c" * 40
LOCKUP_ADDRESS = "0x" + "1" * 40

DAY = 24 * 60 * 60
MONTH = 30 * DAY
YEAR = 365 * DAY
ETHER = 10**18

TOTAL_AMOUNT = 1000 * ETHER
CLIFF_DURATION = 30 * DAY
VESTING_DURATION = YEAR
GENESIS_TIME = 1_700_000_000


class FakeClock:
    """Controllable unix-seconds clock."""

    def __init__(self, now: int = GENESIS_TIME) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        self.now += seconds
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def token():
    token = ERC20Token(name="Test Token", symbol="TEST", owner=OWNER)
    token.mint(OWNER, OWNER, 100_000_000 * ETHER)
    return token


@pytest.fixture
def lockup(token, clock):
    lockup = SimpleLockup.deploy(token, OWNER, address=LOCKUP_ADDRESS, time_provider=clock)
    token.approve(OWNER, LOCKUP_ADDRESS, TOTAL_AMOUNT)
    return lockup


@pytest.fixture
def created(lockup):
    """Revocable lockup with the default 30 day cliff and 1 year vesting."""
    lockup.create_lockup(OWNER, BENEFICIARY, TOTAL_AMOUNT, CLIFF_DURATION, VESTING_DURATION, True)
    return lockup


def make_lockup(token, clock, amount):
    """Deploy a lockup and approve ``amount`` for it."""
    lockup = SimpleLockup.deploy(token, OWNER, address=LOCKUP_ADDRESS, time_provider=clock)
    token.approve(OWNER, LOCKUP_ADDRESS, amount)
    return lockup
