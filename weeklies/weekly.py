"""Weekly posts and calendar-week reconciliation.

Every post belongs to the week starting Monday 00:00 UTC. Storage only holds
weeks somebody wrote about; ``reconcile_weeklies`` fills the gaps with empty
posts so that listings show one entry per calendar week.
"""
from __future__ import annotations

import enum
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import markdown
import nh3

from .errors import AppError
from .utils import utcnow

ONE_WEEK = timedelta(days=7)


class PostFormat(enum.IntEnum):
    MARKDOWN = 0

    @classmethod
    def is_valid_format_int(cls, i: int) -> bool:
        return i in cls._value2member_map_


def render_markdown(src: str) -> str:
    # Raw HTML and script URLs in the source are dropped, matching the editor preview.
    return nh3.clean(markdown.markdown(src, extensions=["fenced_code", "tables"]))


@dataclass
class WeeklyPost:
    author: str = ""
    format: PostFormat = PostFormat.MARKDOWN
    raw_content: str = ""
    week_begin: datetime = field(default_factory=utcnow)
    update_time: datetime = field(default_factory=utcnow)
    language: str = ""  # BCP 47 tag

    def render(self) -> str:
        if self.format is PostFormat.MARKDOWN:
            return render_markdown(self.raw_content)
        raise AppError(f"Unsupported weekly format: {self.format!r}")


def is_week_start(t: datetime) -> bool:
    t = t.astimezone(UTC)
    return t.weekday() == 0 and t == t.replace(hour=0, minute=0, second=0, microsecond=0)


def week_start_of(t: datetime) -> datetime:
    """Monday 00:00 UTC of the week containing ``t``."""
    t = t.astimezone(UTC)
    day = t.replace(hour=0, minute=0, second=0, microsecond=0)
    return day - timedelta(days=day.weekday())


def next_monday(t: datetime) -> datetime:
    """``t`` itself if it is a week start, else the following Monday 00:00 UTC."""
    if is_week_start(t):
        return t.astimezone(UTC)
    return week_start_of(t) + ONE_WEEK


def iter_mondays(begin: datetime, end: datetime) -> Iterator[datetime]:
    monday = next_monday(begin)
    while monday < end:
        yield monday
        monday += ONE_WEEK


def empty_post(username: str, monday: datetime) -> WeeklyPost:
    return WeeklyPost(author=username, week_begin=monday, update_time=monday)


def reconcile_weeklies(
    posts: Sequence[WeeklyPost], username: str, begin: datetime, end: datetime
) -> list[WeeklyPost]:
    """One post per Monday in [begin, end), ascending.

    ``posts`` must be sorted by ``week_begin`` and Monday aligned. Weeks with
    no stored post get an unsaved empty post authored by ``username``.
    """
    result: list[WeeklyPost] = []
    i = 0
    for monday in iter_mondays(begin, end):
        # Skip stored rows that cannot match any remaining Monday.
        while i < len(posts) and posts[i].week_begin < monday:
            i += 1
        if i < len(posts) and posts[i].week_begin == monday:
            result.append(posts[i])
            i += 1
        else:
            result.append(empty_post(username, monday))
    return result


__all__ = [
    "ONE_WEEK",
    "PostFormat",
    "WeeklyPost",
    "render_markdown",
    "is_week_start",
    "week_start_of",
    "next_monday",
    "iter_mondays",
    "empty_post",
    "reconcile_weeklies",
]
