"""
goal_tracker.py — Weekly profit goal card.

Shows current weekly profit against the profit goal as a percentage and a
progress bar, flagging completion at 100%. Editing the goal belongs to the
host application: the card only calls `on_set_goal` when asked.
"""

import logging
from dataclasses import dataclass
from html import escape
from typing import Callable, Optional

from mspcc_report.theme import Theme

logger = logging.getLogger(__name__)


def goal_progress(current_profit: float, profit_goal: float) -> float:
    """Percent of goal reached, clamped to 0-100 (0 when no goal is set)."""
    if profit_goal <= 0:
        return 0.0
    return min(max(current_profit / profit_goal * 100, 0.0), 100.0)


@dataclass
class GoalTrackerCard:
    """Profit-vs-goal progress card."""
    current_profit: float
    profit_goal: float
    on_set_goal: Optional[Callable[[], None]] = None

    @property
    def progress(self) -> float:
        return goal_progress(self.current_profit, self.profit_goal)

    @property
    def is_goal_met(self) -> bool:
        return self.progress >= 100

    @property
    def progress_label(self) -> str:
        return f"{self.progress:.0f}%"

    def set_goal(self) -> None:
        """Hand control to the host's goal-editing flow."""
        if self.on_set_goal is None:
            logger.debug("Set goal requested but no goal editor is attached")
            return
        logger.debug("Opening goal editor (current goal %.2f)", self.profit_goal)
        self.on_set_goal()

    def to_html(self, theme: Optional[Theme] = None) -> str:
        """Render the card as a self-contained HTML fragment."""
        theme = theme or Theme()
        bar_color = theme.css("profit") if self.is_goal_met else theme.css("primary")
        status = "Goal met" if self.is_goal_met else "In progress"
        return f"""
    <div class="goal-card" data-goal-met="{str(self.is_goal_met).lower()}"
         style="background:#fff;border-radius:12px;padding:18px 20px;
                box-shadow:0 2px 8px rgba(0,0,0,.07);font-family:'Segoe UI',Arial,sans-serif;">
        <div style="font-size:12px;color:{theme.css('text_secondary')};font-weight:600;">Weekly Profit Goal</div>
        <div style="font-size:24px;font-weight:700;color:{theme.css('primary')};">${self.profit_goal:,.0f}</div>
        <div style="display:flex;justify-content:space-between;font-size:11px;font-weight:600;
                    color:{theme.css('text_secondary')};margin:10px 0 4px;">
            <span>Progress</span>
            <span style="color:{bar_color};">{escape(self.progress_label)}</span>
        </div>
        <div style="width:100%;background:#E5E7EB;border-radius:999px;height:10px;">
            <div style="width:{self.progress:.1f}%;background:{bar_color};border-radius:999px;height:10px;"></div>
        </div>
        <div style="font-size:10px;color:{theme.css('text_secondary')};margin-top:6px;">
            {status} &nbsp;|&nbsp; current ${self.current_profit:,.2f}
        </div>
    </div>"""
