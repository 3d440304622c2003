"""
test_goal_tracker.py — Unit tests for the profit goal card.
"""

import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from mspcc_report.goal_tracker import GoalTrackerCard, goal_progress


class TestGoalProgress:
    """Progress ratio, clamping and completion flag."""

    def test_half_way(self):
        card = GoalTrackerCard(current_profit=50, profit_goal=100)
        assert card.progress == pytest.approx(50.0)
        assert card.progress_label == "50%"
        assert not card.is_goal_met

    def test_over_goal_is_clamped(self):
        card = GoalTrackerCard(current_profit=120, profit_goal=100)
        assert card.progress == 100.0
        assert card.progress_label == "100%"
        assert card.is_goal_met

    def test_exactly_at_goal_is_met(self):
        assert GoalTrackerCard(100, 100).is_goal_met

    def test_zero_goal_gives_zero(self):
        card = GoalTrackerCard(current_profit=5000, profit_goal=0)
        assert card.progress == 0.0
        assert card.progress_label == "0%"
        assert not card.is_goal_met

    def test_negative_goal_gives_zero(self):
        assert goal_progress(10, -5) == 0.0

    def test_loss_is_clamped_to_zero(self):
        assert goal_progress(-40, 100) == 0.0


class TestSetGoal:
    """The card's only side effect is invoking the callback."""

    def test_callback_invoked(self):
        calls = []
        card = GoalTrackerCard(10, 100, on_set_goal=lambda: calls.append("open"))
        card.set_goal()
        assert calls == ["open"]

    def test_no_callback_is_noop(self):
        GoalTrackerCard(10, 100).set_goal()

    def test_request_is_logged(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="mspcc_report.goal_tracker"):
            GoalTrackerCard(10, 100).set_goal()
            GoalTrackerCard(10, 250, on_set_goal=lambda: None).set_goal()
        messages = [r.getMessage() for r in caplog.records]
        assert any("no goal editor" in m for m in messages)
        assert any("current goal 250.00" in m for m in messages)


class TestToHtml:
    """Tests for the HTML rendering."""

    def test_contains_goal_and_label(self):
        html = GoalTrackerCard(2500, 5000).to_html()
        assert "$5,000" in html
        assert "50%" in html
        assert 'data-goal-met="false"' in html

    def test_met_flag(self):
        html = GoalTrackerCard(6000, 5000).to_html()
        assert 'data-goal-met="true"' in html
        assert "Goal met" in html
