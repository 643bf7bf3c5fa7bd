# Copyright (C) 2024 MyMusicAPI Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Track model."""

from sqlalchemy import BigInteger, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mymusicapi_server.models.base import Base
from mymusicapi_server.models.timestamp import TimestampMixin

DEFAULT_MIME_TYPE = "audio/mpeg"


class Track(Base, TimestampMixin):
    """Metadata for one audio file stored in the bucket."""

    __tablename__ = "tracks"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    file_url: Mapped[str] = mapped_column(Text, nullable=False)
    file_name: Mapped[str] = mapped_column(Text, nullable=False)  # storage key
    file_size: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    mime_type: Mapped[str] = mapped_column(Text, default=DEFAULT_MIME_TYPE, nullable=False)

    tag_links: Mapped[list["TrackTag"]] = relationship(
        "TrackTag",
        back_populates="track",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="TrackTag.position",
    )

    @property
    def tags(self) -> list[str]:
        return [link.tag for link in self.tag_links]


class TrackTag(Base):
    """One lower-cased tag on a track."""

    __tablename__ = "track_tags"

    track_id: Mapped[int] = mapped_column(
        ForeignKey("tracks.id", ondelete="CASCADE"), primary_key=True
    )
    tag: Mapped[str] = mapped_column(Text, primary_key=True, index=True)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    track: Mapped["Track"] = relationship("Track", back_populates="tag_links")
