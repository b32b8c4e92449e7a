"""Tests for laser_painter.scheduler."""
from __future__ import annotations

import pytest


def test_call_later_fires_once_when_due(clock, scheduler):
    calls = []
    timer = scheduler.call_later(1.0, lambda: calls.append(clock.now))
    assert scheduler.run_due() == 0
    clock.advance(0.5)
    scheduler.run_due()
    assert calls == []
    clock.advance(0.5)
    assert scheduler.run_due() == 1
    assert calls == [1.0]
    assert not timer.active
    clock.advance(5)
    assert scheduler.run_due() == 0


def test_cancelled_timer_never_fires(clock, scheduler):
    calls = []
    timer = scheduler.call_later(1.0, lambda: calls.append("x"))
    timer.cancel()
    clock.advance(2)
    assert scheduler.run_due() == 0
    assert calls == []
    assert scheduler.pending() == 0


def test_timers_fire_in_deadline_order(clock, scheduler):
    calls = []
    scheduler.call_later(0.3, lambda: calls.append("b"))
    scheduler.call_later(0.1, lambda: calls.append("a"))
    scheduler.call_at(0.3, lambda: calls.append("c"))
    clock.advance(1)
    scheduler.run_due()
    assert calls == ["a", "b", "c"]


def test_periodic_timer_catches_up_and_stops(clock, scheduler):
    ticks = []

    def tick():
        ticks.append(clock.now)
        if len(ticks) == 3:
            timer.cancel()

    timer = scheduler.call_every(0.25, tick)
    clock.advance(0.3)
    assert scheduler.run_due() == 1
    clock.advance(10)
    assert scheduler.run_due() == 2
    assert len(ticks) == 3
    assert not timer.active
    assert scheduler.pending() == 0


def test_periodic_timer_with_past_start(clock, scheduler):
    ticks = []
    clock.advance(2.0)
    scheduler.call_every(0.5, lambda: ticks.append(clock.now), start=1.0)
    assert scheduler.run_due() == 2
    clock.advance(0.5)
    assert scheduler.run_due() == 1
    assert len(ticks) == 3


def test_periodic_timer_needs_positive_interval(scheduler):
    with pytest.raises(ValueError):
        scheduler.call_every(0, lambda: None)


def test_callbacks_may_schedule_due_timers(clock, scheduler):
    calls = []
    scheduler.call_later(0.1, lambda: scheduler.call_at(0.2, lambda: calls.append("inner")))
    clock.advance(1)
    assert scheduler.run_due() == 2
    assert calls == ["inner"]
