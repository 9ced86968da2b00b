"""SQLAlchemy models. Timestamps are stored as integer seconds since the epoch (UTC)."""

from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200), unique=True)


class Weekly(Base):
    __tablename__ = "weeklies"
    __table_args__ = (UniqueConstraint("user_id", "week_start", name="uq_weeklies_user_week"),)
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    week_start: Mapped[int] = mapped_column(Integer)  # Monday 00:00 UTC
    update_time: Mapped[int] = mapped_column(Integer)
    format: Mapped[int] = mapped_column(Integer, default=0)
    lang: Mapped[str] = mapped_column(String(35), default="")
    content: Mapped[str] = mapped_column(Text, default="")
