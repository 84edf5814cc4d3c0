"""Ticker text handling — editor text to announcements and back to a
single scrolling line.
"""

from __future__ import annotations

from collections.abc import Sequence

from safetyboard.models.board import DEFAULT_ANNOUNCEMENTS, Announcement
from safetyboard.policy.resolver import TickerPolicy


def announcements_from_text(text: str) -> tuple[Announcement, ...]:
    """One announcement per non-blank line, ids numbered from "1".

    Blank input restores the default announcements.
    """
    lines = [line.strip() for line in text.splitlines()]
    lines = [line for line in lines if line]
    if not lines:
        return DEFAULT_ANNOUNCEMENTS
    return tuple(
        Announcement(id=str(idx), text=line) for idx, line in enumerate(lines, 1)
    )


def announcements_to_text(announcements: Sequence[Announcement]) -> str:
    """Editor text for an announcement list."""
    return "\n".join(a.text for a in announcements)


def ticker_text(announcements: Sequence[Announcement], policy: TickerPolicy) -> str:
    """Concatenate announcement texts in display order."""
    text = policy.separator.join(a.text for a in announcements if a.text)
    return text or policy.empty_text


def ticker_seconds(text: str, policy: TickerPolicy) -> int:
    """Scroll duration scaled to text length, within configured bounds."""
    seconds = int(len(text) / policy.chars_per_second + 0.5)
    return min(policy.max_seconds, max(policy.min_seconds, seconds))
