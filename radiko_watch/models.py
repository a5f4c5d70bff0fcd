"""
SQLAlchemy ORM Models for radiko-watch

This module defines the database models for stations and matched programs.
"""
from datetime import datetime, timezone
from sqlalchemy import BigInteger, String, Text, DateTime, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models"""
    pass


class Station(Base):
    """Station model for storing the radiko station list"""
    __tablename__ = "stations"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    banner_url: Mapped[str] = mapped_column(String, nullable=False)
    area_id: Mapped[str] = mapped_column(String, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc))

    def __repr__(self) -> str:
        return f"<Station(id={self.id}, name={self.name})>"


class MatchedProgram(Base):
    """
    One program document stored under one matched artist.

    `artist` is the matcher's identity string and acts as the collection key;
    the full serialized program lives in `document`.
    """
    __tablename__ = "matched_programs"

    artist: Mapped[str] = mapped_column(String, primary_key=True)
    station_id: Mapped[str] = mapped_column(String, primary_key=True)
    program_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    start_time: Mapped[str] = mapped_column(String, nullable=False)
    end_time: Mapped[str] = mapped_column(String, nullable=False)
    expire_at: Mapped[str] = mapped_column(String, nullable=False)
    app_url: Mapped[str] = mapped_column(String, nullable=False)
    document: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("idx_matched_programs_artist_start", "artist", "start_time"),
        Index("idx_matched_programs_expire_at", "expire_at"),
    )

    def __repr__(self) -> str:
        return f"<MatchedProgram(artist={self.artist}, title={self.title}, station={self.station_id})>"
