"""Student account: only the fields notification targeting needs (branch, semester, year)."""
from sqlalchemy import Column, DateTime, Integer, String

from campusbell.db.base import Base
from campusbell.models._types import new_id, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True, unique=True)
    branch_id = Column(String(36), nullable=True, index=True)
    semester = Column(Integer, nullable=True)
    year = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
