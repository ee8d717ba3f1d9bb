from terminal_player.sync.timer import Timer
from tests.mocks.fake_clock import FakeClock


def test_timer_expires_at_length():
    clock = FakeClock()
    t = Timer(0.2, now=clock)
    assert not t.expired()
    clock.advance(0.199)
    assert not t.expired()
    clock.advance(0.001)
    assert t.expired()


def test_timer_rebuild_changes_length_and_restarts():
    clock = FakeClock()
    t = Timer(0.2, now=clock)
    clock.advance(1.0)
    assert t.expired()

    t.rebuild(3.0)
    assert t.length_s == 3.0
    assert not t.expired()
    clock.advance(3.0)
    assert t.expired()


def test_zero_length_timer_is_immediately_expired():
    t = Timer(0.0, now=FakeClock())
    assert t.expired()
