"""
Property-based tests for vesting and lifecycle invariants.

Uses Hypothesis to drive random schedules, release times and revocation
points through the engine and checks that funds are conserved exactly.
"""

from hypothesis import assume, given, settings, strategies as st

from lockup import ERC20Token, NoTokensAvailable, SimpleLockup
from lockup.records import LockupRecord
from lockup.safe_math import MAX_UINT256
from lockup.vesting import releasable_amount, vested_amount

from conftest import BENEFICIARY, LOCKUP_ADDRESS, OWNER, FakeClock

MAX_DURATION = 10 * 365 * 24 * 60 * 60
START = 1_700_000_000

amounts = st.integers(min_value=1, max_value=MAX_UINT256)
durations = st.integers(min_value=1, max_value=MAX_DURATION)


@st.composite
def schedules(draw):
    vesting = draw(durations)
    cliff = draw(st.integers(min_value=0, max_value=vesting - 1))
    return draw(amounts), cliff, vesting


def make_record(total, cliff, vesting):
    return LockupRecord(
        beneficiary=BENEFICIARY,
        total_amount=total,
        start_time=START,
        cliff_duration=cliff,
        vesting_duration=vesting,
        revocable=True,
    )


class TestVestingMathProperties:
    @given(schedules(), st.integers(min_value=0, max_value=2 * MAX_DURATION))
    @settings(max_examples=300)
    def test_deterministic_and_bounded(self, schedule, offset):
        record = make_record(*schedule)
        first = vested_amount(record, START + offset)
        assert vested_amount(record, START + offset) == first
        assert 0 <= first <= record.total_amount

    @given(
        schedules(),
        st.integers(min_value=0, max_value=2 * MAX_DURATION),
        st.integers(min_value=0, max_value=2 * MAX_DURATION),
    )
    @settings(max_examples=300)
    def test_monotonic(self, schedule, t1, t2):
        record = make_record(*schedule)
        lo, hi = sorted((t1, t2))
        assert vested_amount(record, START + lo) <= vested_amount(record, START + hi)

    @given(schedules())
    @settings(max_examples=200)
    def test_exact_boundaries(self, schedule):
        record = make_record(*schedule)
        total, cliff, vesting = schedule
        if cliff > 0:
            assert vested_amount(record, START + cliff - 1) == 0
        assert vested_amount(record, START + vesting) == total
        assert releasable_amount(record, START + vesting) == total

    @given(schedules(), st.lists(st.integers(min_value=0, max_value=MAX_DURATION), max_size=20))
    @settings(max_examples=200)
    def test_repeated_releases_leave_no_dust(self, schedule, times):
        record = make_record(*schedule)
        total, _, vesting = schedule
        for t in sorted(times):
            amount = releasable_amount(record, START + t)
            assert amount >= 0
            record.released_amount += amount
            assert record.released_amount <= total

        record.released_amount += releasable_amount(record, START + vesting)
        assert record.released_amount == total


class TestLifecycleConservation:
    @given(
        total=st.integers(min_value=1, max_value=10**30),
        vesting=st.integers(min_value=2, max_value=MAX_DURATION),
        cliff_fraction=st.floats(min_value=0.0, max_value=0.99),
        release_points=st.lists(st.floats(min_value=0.0, max_value=1.2), max_size=6),
        revoke_point=st.one_of(st.none(), st.floats(min_value=0.0, max_value=0.999)),
    )
    @settings(max_examples=150, deadline=None)
    def test_released_plus_refund_plus_claimable_is_total(
        self, total, vesting, cliff_fraction, release_points, revoke_point
    ):
        cliff = min(int(vesting * cliff_fraction), vesting - 1)
        clock = FakeClock(START)
        token = ERC20Token(name="Prop", symbol="PROP", owner=OWNER)
        token.mint(OWNER, OWNER, total)
        lockup = SimpleLockup.deploy(token, OWNER, address=LOCKUP_ADDRESS, time_provider=clock)
        token.approve(OWNER, LOCKUP_ADDRESS, total)
        lockup.create_lockup(OWNER, BENEFICIARY, total, cliff, vesting, True)

        events = [(p, "release") for p in release_points]
        if revoke_point is not None:
            events.append((revoke_point, "revoke"))

        refund = 0
        for point, action in sorted(events):
            clock.now = max(clock.now, START + int(vesting * point))
            if action == "revoke":
                assume(lockup.vested_amount(BENEFICIARY) < total)
                refund = lockup.revoke(OWNER, BENEFICIARY)
            else:
                try:
                    lockup.release(BENEFICIARY)
                except NoTokensAvailable:
                    pass

        record = lockup.get_lockup(BENEFICIARY)
        still_claimable = record.entitlement() - record.released_amount
        assert record.released_amount + refund + still_claimable == total
        assert token.balance_of(LOCKUP_ADDRESS) == still_claimable
        assert token.balance_of(BENEFICIARY) == record.released_amount

        frozen = lockup.vested_amount(BENEFICIARY)
        if record.revoked:
            clock.now += vesting
            assert lockup.vested_amount(BENEFICIARY) == frozen

        clock.now = max(clock.now, START + vesting)
        if lockup.releasable_amount(BENEFICIARY) > 0:
            lockup.release(BENEFICIARY)
        final = lockup.get_lockup(BENEFICIARY)
        assert final.released_amount + refund == total
        assert token.balance_of(LOCKUP_ADDRESS) == 0


class TestReleaseUnderArbitraryClock:
    @given(schedules(), st.lists(st.integers(min_value=-MAX_DURATION, max_value=2 * MAX_DURATION), max_size=20))
    @settings(max_examples=300)
    def test_releasable_never_negative_after_releases(self, schedule, times):
        record = make_record(*schedule)
        for t in times:
            amount = releasable_amount(record, START + t)
            assert amount >= 0
            before = record.released_amount
            record.released_amount += amount
            assert record.released_amount >= before
            assert record.released_amount <= record.total_amount
            for earlier in (t - 1, 0, -1):
                assert releasable_amount(record, START + earlier) >= 0

    @given(
        total=st.integers(min_value=1, max_value=10**30),
        vesting=st.integers(min_value=2, max_value=MAX_DURATION),
        offsets=st.lists(st.floats(min_value=-0.5, max_value=1.5), min_size=1, max_size=10),
    )
    @settings(max_examples=150, deadline=None)
    def test_released_amount_never_decreases_when_clock_moves_back(self, total, vesting, offsets):
        clock = FakeClock(START)
        token = ERC20Token(name="Prop", symbol="PROP", owner=OWNER)
        token.mint(OWNER, OWNER, total)
        lockup = SimpleLockup.deploy(token, OWNER, address=LOCKUP_ADDRESS, time_provider=clock)
        token.approve(OWNER, LOCKUP_ADDRESS, total)
        lockup.create_lockup(OWNER, BENEFICIARY, total, 0, vesting, True)

        released = 0
        for offset in offsets:
            clock.now = START + int(vesting * offset)
            assert lockup.releasable_amount(BENEFICIARY) >= 0
            try:
                lockup.release(BENEFICIARY)
            except NoTokensAvailable:
                pass
            record = lockup.get_lockup(BENEFICIARY)
            assert record.released_amount >= released
            released = record.released_amount
            assert token.balance_of(BENEFICIARY) == released
            assert token.balance_of(LOCKUP_ADDRESS) == total - released
