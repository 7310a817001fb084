"""Tests for the append-only Session."""

from __future__ import annotations

import pytest

from actionloop.agent.session import Session
from actionloop.domain.models import (
    ActionFailure,
    ActionFailureKind,
    ActionRequest,
    ActionResultTurn,
    HumanTurn,
    ModelTurn,
)
from actionloop.errors import StateInvariantViolation


def _two_request_turn() -> ModelTurn:
    return ModelTurn(
        action_requests=[
            ActionRequest(id="a", action_name="navigate", arguments={"url": "u"}),
            ActionRequest(id="b", action_name="click", arguments={"x": 1, "y": 2}),
        ]
    )


def _result(request_id: str, name: str = "navigate") -> ActionResultTurn:
    return ActionResultTurn(action_request_id=request_id, action_name=name, output="ok")


@pytest.fixture
def session() -> Session:
    s = Session("sess-1")
    s.append(HumanTurn(text="do the thing"))
    return s


class TestSessionOrdering:
    def test_must_start_with_human_turn(self) -> None:
        s = Session("sess-1")
        with pytest.raises(StateInvariantViolation, match="must start"):
            s.append(ModelTurn(text="DONE"))

    def test_rejects_second_human_turn(self, session: Session) -> None:
        with pytest.raises(StateInvariantViolation):
            session.append(HumanTurn(text="again"))

    def test_append_returns_stable_index(self, session: Session) -> None:
        assert session.append(_two_request_turn()) == 1
        assert session.append(_result("a")) == 2

    def test_tracks_outstanding_requests(self, session: Session) -> None:
        session.append(_two_request_turn())
        assert session.outstanding == ("a", "b")
        session.append(_result("a"))
        assert session.outstanding == ("b",)

    def test_rejects_model_turn_while_requests_outstanding(self, session: Session) -> None:
        session.append(_two_request_turn())
        session.append(_result("a"))
        with pytest.raises(StateInvariantViolation, match="still awaiting"):
            session.append(ModelTurn(text="DONE"))


class TestSessionCorrelation:
    def test_rejects_result_without_request(self, session: Session) -> None:
        with pytest.raises(StateInvariantViolation, match="no outstanding"):
            session.append(_result("ghost"))

    def test_rejects_result_out_of_order(self, session: Session) -> None:
        session.append(_two_request_turn())
        with pytest.raises(StateInvariantViolation, match="does not match"):
            session.append(_result("b", "click"))
        # Rejected turn is not recorded
        assert len(session) == 2

    def test_rejects_empty_model_turn(self, session: Session) -> None:
        with pytest.raises(StateInvariantViolation, match="neither"):
            session.append(ModelTurn())

    def test_rejects_duplicate_request_ids(self, session: Session) -> None:
        turn = ModelTurn(
            action_requests=[
                ActionRequest(id="a", action_name="navigate"),
                ActionRequest(id="a", action_name="navigate"),
            ]
        )
        with pytest.raises(StateInvariantViolation, match="repeats"):
            session.append(turn)


class TestSessionViews:
    def test_complete_session(self, session: Session) -> None:
        session.append(_two_request_turn())
        session.append(_result("a"))
        session.append(
            ActionResultTurn(
                action_request_id="b",
                action_name="click",
                error=ActionFailure(kind=ActionFailureKind.EXECUTION_FAILURE, message="boom"),
            )
        )
        assert session.is_complete is False
        session.append(ModelTurn(text="DONE"))

        assert session.is_complete is True
        assert session.final_text == "DONE"
        assert session.last_model_turn.text == "DONE"
        assert session.session_id == "sess-1"

        lines = session.summary()
        assert len(lines) == 5
        assert lines[0].startswith("[0] human: do the thing")
        assert "navigate(a), click(b)" in lines[1]
        assert "execution_failure: boom" in lines[3]

    def test_turns_is_a_snapshot(self, session: Session) -> None:
        snapshot = session.turns
        session.append(ModelTurn(text="DONE"))
        assert len(snapshot) == 1
        assert len(session.turns) == 2
