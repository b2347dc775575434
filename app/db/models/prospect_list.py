from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from app.db.base import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONPayload = JSON().with_variant(JSONB(), "postgresql")


class ProspectListORM(Base):
    __tablename__ = "prospect_lists"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="active")
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    columns = relationship(
        "ProspectColumnORM",
        back_populates="prospect_list",
        cascade="all, delete-orphan",
        order_by="ProspectColumnORM.display_order",
    )
    prospects = relationship(
        "ProspectORM",
        back_populates="prospect_list",
        cascade="all, delete-orphan",
    )


class ProspectColumnORM(Base):
    __tablename__ = "prospect_columns"

    id = Column(String, primary_key=True)
    list_id = Column(String, ForeignKey("prospect_lists.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    column_type = Column(String, nullable=False, default="text")
    is_phone = Column(Boolean, nullable=False, default=False)
    display_order = Column(Integer, nullable=False)

    prospect_list = relationship("ProspectListORM", back_populates="columns")


class ProspectORM(Base):
    __tablename__ = "prospects"

    id = Column(String, primary_key=True)
    list_id = Column(String, ForeignKey("prospect_lists.id", ondelete="CASCADE"), nullable=False, index=True)
    data = Column(JSONPayload, nullable=False, default=dict)
    status = Column(String, nullable=False, default="nouveau")
    comment = Column(Text, nullable=False, default="")
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    prospect_list = relationship("ProspectListORM", back_populates="prospects")
