"""
Daily Plan Model

One row per user per calendar date. Todos and schedule are stored as JSON
list documents; the whole row is replaced on every save.
"""

from datetime import datetime
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Date,
    DateTime,
    ForeignKey,
    JSON,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from daybook.database import Base


class DailyPlan(Base):
    __tablename__ = "daily_plans"
    __table_args__ = (
        UniqueConstraint("user_id", "plan_date", name="uq_daily_plans_user_date"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    plan_date = Column(Date, nullable=False, index=True)

    breakfast = Column(String(500), nullable=False, default="")
    lunch = Column(String(500), nullable=False, default="")
    dinner = Column(String(500), nullable=False, default="")
    snacks = Column(String(500), nullable=False, default="")
    mood = Column(String(255), nullable=False, default="")
    weather = Column(String(255), nullable=False, default="")
    notes = Column(Text, nullable=False, default="")
    high_level_note = Column(Text, nullable=False, default="")
    water_intake_glasses = Column(Integer, nullable=False, default=0)

    todos = Column(JSON, nullable=True)
    schedule = Column(JSON, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    user = relationship("User", back_populates="daily_plans")

    SCALAR_FIELDS = (
        "breakfast",
        "lunch",
        "dinner",
        "snacks",
        "mood",
        "weather",
        "notes",
        "high_level_note",
    )

    def __repr__(self):
        return f"<DailyPlan user={self.user_id} {self.plan_date}>"
