"""
Database models for the guided-tour store
"""

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Text, Time
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class VisitCategoryRecord(Base):
    """Visit category (built-in or custom) known to the system"""

    __tablename__ = "visit_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)


class PlaceRecord(Base):
    """A physical site offering one or more visit categories"""

    __tablename__ = "places"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    # Comma-separated category names, e.g. "STORICA, SCIENTIFICA"
    categories = Column(Text, nullable=True)


class GuideRecord(Base):
    """Volunteer guide qualified for a subset of visit categories"""

    __tablename__ = "guides"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    categories = Column(Text, nullable=True)

    availability = relationship(
        "AvailabilityRecord", back_populates="guide", cascade="all, delete-orphan"
    )


class VisitRecord(Base):
    """Scheduled guided tour"""

    __tablename__ = "visits"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    place = Column(String(255), nullable=False, index=True)
    categories = Column(Text, nullable=True)
    guide_email = Column(String(255), nullable=True, index=True)

    # Scheduling
    visit_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=True)
    duration_minutes = Column(Integer, nullable=False, default=0)

    # Capacity
    capacity = Column(Integer, nullable=False)
    min_participants = Column(Integer, nullable=False, default=0)
    reserved_seats = Column(Integer, nullable=False, default=0)

    # Status workflow: Proposta → Completa/Confermata → Effettuata, or → Cancellata
    state = Column(String(50), nullable=False, default="Proposta", index=True)

    ticket_required = Column(Boolean, nullable=False, default=False)
    accessible = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class BlackoutDateRecord(Base):
    """Calendar date on which no visit may be scheduled"""

    __tablename__ = "blackout_dates"

    id = Column(Integer, primary_key=True, index=True)
    blackout_date = Column(Date, unique=True, nullable=False, index=True)
    reason = Column(Text, nullable=True)


class AvailabilityRecord(Base):
    """One date a guide declared available for the upcoming month"""

    __tablename__ = "availability"

    id = Column(Integer, primary_key=True, index=True)
    guide_id = Column(Integer, ForeignKey("guides.id"), nullable=False, index=True)
    available_date = Column(Date, nullable=False)

    guide = relationship("GuideRecord", back_populates="availability")


class ApplicationSetting(Base):
    """Key/value application settings (e.g. availability collection open flag)"""

    __tablename__ = "application_settings"

    key = Column(String(100), primary_key=True)
    value = Column(String(255), nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
