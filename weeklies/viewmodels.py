from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from .errors import AppError
from .utils import days_since_new_year
from .weekly import WeeklyPost


@dataclass
class WeeklyVM:
    week_str: str  # "2024 week 2"
    date_str: str  # ISO date of the week start
    week_begin: str
    week_end: str  # Sunday of the same week
    update: str
    content: str  # rendered HTML, or raw Markdown for the editor
    lang: str
    author: str
    is_empty: bool = False


def build_weekly_vm(p: WeeklyPost, render: bool = True) -> WeeklyVM:
    if render:
        try:
            content = p.render()
        except AppError as e:
            content = e.message
    else:
        content = p.raw_content

    begin = p.week_begin.date()
    week = days_since_new_year(p.week_begin) // 7 + 1
    return WeeklyVM(
        week_str=f"{begin.year} week {week}",
        date_str=begin.isoformat(),
        week_begin=begin.isoformat(),
        week_end=(begin + timedelta(days=6)).isoformat(),
        update=p.update_time.replace(microsecond=0).strftime("%Y-%m-%d %H:%M:%S"),
        content=content,
        lang=p.language,
        author=p.author,
        is_empty=not p.raw_content.strip(),
    )


__all__ = ["WeeklyVM", "build_weekly_vm"]
