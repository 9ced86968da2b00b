from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .db import get_session
from .errors import AppError
from .models import User, Weekly
from .utils import seconds_to_time, time_to_seconds, utcnow
from .weekly import ONE_WEEK, PostFormat, WeeklyPost, is_week_start, reconcile_weeklies, week_start_of

log = logging.getLogger(__name__)

WEEKS_PER_YEAR = 52


class DataSourceInterface(ABC):
    @abstractmethod
    def get_user_id(self, name: str) -> int | None: ...

    @abstractmethod
    def create_user(self, name: str) -> int: ...

    @abstractmethod
    def get_weeklies(self, username: str, begin: datetime, end: datetime) -> list[WeeklyPost]:
        """Stored posts with begin <= week_begin < end, ascending."""

    @abstractmethod
    def update_weekly(self, username: str, post: WeeklyPost) -> None: ...

    def get_weeklies_one_year(self, username: str, now: datetime | None = None) -> list[WeeklyPost]:
        """The last 52 calendar weeks up to and including the current one, gap-filled."""
        end = week_start_of(now or utcnow()) + ONE_WEEK
        begin = end - WEEKS_PER_YEAR * ONE_WEEK
        return reconcile_weeklies(self.get_weeklies(username, begin, end), username, begin, end)


class DataSourceSQL(DataSourceInterface):
    """Weeklies stored through the SQLAlchemy session registry in ``db``."""

    def get_user_id(self, name: str) -> int | None:
        db = get_session()
        try:
            ids = db.execute(select(User.id).where(User.name == name)).scalars().all()
        except SQLAlchemyError as e:
            raise AppError(f"Failed to look up user {name}: {e}") from e
        finally:
            db.close()
        if not ids:
            return None
        if len(ids) > 1:
            raise AppError(f"Found multiple IDs for user {name}")
        return int(ids[0])

    def create_user(self, name: str) -> int:
        db = get_session()
        try:
            user = User(name=name)
            db.add(user)
            db.commit()
            log.info("Created user %s", name)
            return int(user.id)
        except IntegrityError as e:
            db.rollback()
            raise AppError(f"User {name} already exists") from e
        except SQLAlchemyError as e:
            db.rollback()
            raise AppError(f"Failed to create user {name}: {e}") from e
        finally:
            db.close()

    def get_weeklies(self, username: str, begin: datetime, end: datetime) -> list[WeeklyPost]:
        uid = self.get_user_id(username)
        if uid is None:
            raise AppError("User not found")
        db = get_session()
        try:
            rows = (
                db.execute(
                    select(Weekly)
                    .where(
                        Weekly.user_id == uid,
                        Weekly.week_start >= time_to_seconds(begin),
                        Weekly.week_start < time_to_seconds(end),
                    )
                    .order_by(Weekly.week_start)
                )
                .scalars()
                .all()
            )
            weeklies = []
            for row in rows:
                if not PostFormat.is_valid_format_int(row.format):
                    raise AppError(f"Invalid format: {row.format}")
                weeklies.append(
                    WeeklyPost(
                        author=username,
                        format=PostFormat(row.format),
                        raw_content=row.content or "",
                        week_begin=seconds_to_time(row.week_start),
                        update_time=seconds_to_time(row.update_time),
                        language=row.lang or "",
                    )
                )
            return weeklies
        except SQLAlchemyError as e:
            raise AppError(f"Failed to read weeklies of {username}: {e}") from e
        finally:
            db.close()

    def update_weekly(self, username: str, post: WeeklyPost) -> None:
        if not is_week_start(post.week_begin):
            raise AppError(f"Week begin {post.week_begin.isoformat()} is not a Monday 00:00 UTC")
        uid = self.get_user_id(username)
        if uid is None:
            uid = self.create_user(username)
        week_start = time_to_seconds(post.week_begin)
        now = time_to_seconds(utcnow())
        db = get_session()
        try:
            row = db.execute(
                select(Weekly).where(Weekly.user_id == uid, Weekly.week_start == week_start)
            ).scalar_one_or_none()
            if row is None:
                row = Weekly(user_id=uid, week_start=week_start)
                db.add(row)
            row.update_time = now
            row.format = int(post.format)
            row.lang = post.language
            row.content = post.raw_content
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise AppError(f"Failed to save weekly of {username}: {e}") from e
        finally:
            db.close()


__all__ = ["DataSourceInterface", "DataSourceSQL", "WEEKS_PER_YEAR"]
