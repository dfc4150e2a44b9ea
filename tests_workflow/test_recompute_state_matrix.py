"""Recompute State Machine Matrix - Parameterized validation of all event/state combinations.

Uses pytest.mark.parametrize to create a data-driven truth table for state transitions.
This serves as executable documentation of the state machine contract.

Test Categories:
    1. Valid transitions: Event fires successfully from allowed source states
    2. Invalid transitions: Event raises TransitionNotAllowed from forbidden states
    3. Guards: finish_leg returns to idle only for the last outstanding fetch

Matrix Reference (from route_engine.py docstring):
    2 states x 2 events = 4 combinations
    3 allowed (finish_leg has a guarded target)
    1 forbidden (finish_leg from idle)
"""

import logging
from typing import TYPE_CHECKING, Any

import pytest
from statemachine.exceptions import TransitionNotAllowed

from velorouter.engine.route_engine import RecomputeContext, RecomputeStateMachine

if TYPE_CHECKING:
    from conftest import SMAndCtx

# =============================================================================
# TRUTH TABLE
# =============================================================================
# Format: (event_name, source_state, in_flight_before_event, expected_target)

VALID_TRANSITIONS: list[tuple[str, str, int, str]] = [
    ("start_batch", "idle", 0, "recomputing"),
    ("start_batch", "recomputing", 1, "recomputing"),  # overlapping batch
    ("finish_leg", "recomputing", 1, "idle"),  # last outstanding fetch
    ("finish_leg", "recomputing", 3, "recomputing"),  # self-loop
]

INVALID_TRANSITIONS: list[tuple[str, list[str]]] = [
    ("finish_leg", ["idle"]),
]

EVENT_KWARGS: dict[str, dict[str, Any]] = {
    "start_batch": {"leg_count": 1},
    "finish_leg": {},
}


def _enter_state(sm: RecomputeStateMachine, state_name: str, in_flight: int) -> None:
    """Drive the machine to state_name with in_flight fetches outstanding.

    Uses real transitions so entry/exit hooks keep idle_event consistent.
    """
    if state_name == "recomputing":
        sm.start_batch(leg_count=in_flight)
    assert sm.current_state == getattr(sm, state_name)
    assert sm.context.in_flight == in_flight


class TestTransitionMatrix:
    """Parameterized tests validating the complete state machine transition matrix."""

    @pytest.mark.parametrize("event,source,in_flight,target", VALID_TRANSITIONS)
    def test_valid_transitions(
        self,
        sm_and_ctx: "SMAndCtx",
        event: str,
        source: str,
        in_flight: int,
        target: str,
    ) -> None:
        """Valid transitions reach the expected target state."""
        sm, ctx = sm_and_ctx
        _enter_state(sm=sm, state_name=source, in_flight=in_flight)

        sm.send(event, **EVENT_KWARGS[event])

        assert sm.current_state == getattr(sm, target)
        assert ctx.state == target

    @pytest.mark.parametrize("event,invalid_states", INVALID_TRANSITIONS)
    def test_invalid_transitions_raise_error(
        self,
        sm_and_ctx: "SMAndCtx",
        event: str,
        invalid_states: list[str],
    ) -> None:
        """Invalid transitions raise TransitionNotAllowed and leave the context alone."""
        sm, ctx = sm_and_ctx

        for state_name in invalid_states:
            _enter_state(sm=sm, state_name=state_name, in_flight=0)

            with pytest.raises(TransitionNotAllowed):
                sm.send(event, **EVENT_KWARGS[event])

            assert ctx.in_flight == 0
            assert ctx.legs_completed == 0

    def test_try_transition_reports_failure(self, sm_and_ctx: "SMAndCtx", caplog: pytest.LogCaptureFixture) -> None:
        sm, _ = sm_and_ctx

        with caplog.at_level(logging.WARNING, logger="velorouter.engine.route_engine"):
            assert sm.try_transition("finish_leg") is False

        assert sm.is_idle
        assert "finish_leg" in caplog.text

    def test_try_transition_reports_success(self, sm_and_ctx: "SMAndCtx") -> None:
        sm, _ = sm_and_ctx
        assert sm.try_transition("start_batch", leg_count=2) is True
        assert sm.is_recomputing


class TestInFlightAccounting:
    """Counters and idle_event follow the transitions."""

    def test_initial_state(self, sm_and_ctx: "SMAndCtx") -> None:
        sm, ctx = sm_and_ctx
        assert sm.is_idle
        assert ctx.state == "idle"
        assert ctx.idle_event.is_set()

    def test_overlapping_batches_accumulate(self, sm_and_ctx: "SMAndCtx") -> None:
        """A second batch while recomputing adds to the outstanding count."""
        sm, ctx = sm_and_ctx

        sm.start_batch(leg_count=2)
        sm.start_batch(leg_count=3)

        assert ctx.in_flight == 5
        assert ctx.batches_started == 2
        assert not ctx.idle_event.is_set()

    def test_idle_only_after_last_leg(self, sm_and_ctx: "SMAndCtx") -> None:
        sm, ctx = sm_and_ctx
        sm.start_batch(leg_count=3)

        sm.finish_leg()
        sm.finish_leg()
        assert sm.is_recomputing
        assert not ctx.idle_event.is_set()

        sm.finish_leg()
        assert sm.is_idle
        assert ctx.in_flight == 0
        assert ctx.legs_completed == 3
        assert ctx.idle_event.is_set()

    def test_restart_after_idle(self, sm_and_ctx: "SMAndCtx") -> None:
        """idle_event is cleared again when a new batch starts."""
        sm, ctx = sm_and_ctx
        sm.start_batch(leg_count=1)
        sm.finish_leg()
        assert ctx.idle_event.is_set()

        sm.start_batch(leg_count=1)
        assert not ctx.idle_event.is_set()
        assert ctx.batches_started == 2


class TestLogListener:
    """The log listener reports state changes."""

    def test_state_change_logged_at_info(self, sm_and_ctx: "SMAndCtx", caplog: pytest.LogCaptureFixture) -> None:
        sm, _ = sm_and_ctx

        with caplog.at_level(logging.INFO, logger="velorouter.engine.route_engine"):
            sm.start_batch(leg_count=1)
            sm.finish_leg()

        assert "[STATE] Idle --(start_batch)--> Recomputing" in caplog.text
        assert "[STATE] Recomputing --(finish_leg)--> Idle" in caplog.text

    def test_self_transition_not_logged_at_info(
        self, sm_and_ctx: "SMAndCtx", caplog: pytest.LogCaptureFixture
    ) -> None:
        sm, _ = sm_and_ctx
        sm.start_batch(leg_count=2)
        caplog.clear()

        with caplog.at_level(logging.INFO, logger="velorouter.engine.route_engine"):
            sm.finish_leg()

        assert "[STATE]" not in caplog.text

    def test_create_without_listener(self) -> None:
        sm, ctx = RecomputeStateMachine.create(add_log_listener=False)
        sm.start_batch(leg_count=1)
        assert ctx.in_flight == 1

    def test_given_context_is_the_model(self) -> None:
        ctx = RecomputeContext()
        sm = RecomputeStateMachine(context=ctx)
        sm.start_batch(leg_count=2)
        assert sm.context is ctx
        assert ctx.in_flight == 2
