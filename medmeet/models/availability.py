"""Availability model definitions."""

from sqlalchemy import Column, ForeignKey, Integer, String, Time

from medmeet.database import Base


class Availability(Base):
    """A doctor's recurring weekly open window."""
    __tablename__ = "availability"

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    day_of_week = Column(String, nullable=False)  # DayOfWeek value, e.g. "monday"
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
