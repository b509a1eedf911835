"""SQLAlchemy-backed store - database operations for the scheduling engine"""

import logging
from contextlib import contextmanager
from datetime import date
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..models import (
    ApplicationSetting,
    AvailabilityRecord,
    BlackoutDateRecord,
    GuideRecord,
    PlaceRecord,
    VisitCategoryRecord,
    VisitRecord,
)
from ..schemas import Guide, Place, Visit, VisitCategory, VisitState
from ..shared.validators import format_category_list, parse_category_list
from .base import StoreError, TourStore

logger = logging.getLogger(__name__)

COLLECTION_OPEN_KEY = "availability_collection_open"


def visit_from_record(record: VisitRecord) -> Visit:
    return Visit(
        id=record.id,
        title=record.title,
        place=record.place,
        categories=parse_category_list(record.categories),
        guide_email=record.guide_email,
        visit_date=record.visit_date,
        start_time=record.start_time,
        duration_minutes=record.duration_minutes or 0,
        capacity=record.capacity,
        min_participants=record.min_participants or 0,
        reserved_seats=record.reserved_seats or 0,
        state=VisitState(record.state),
        ticket_required=bool(record.ticket_required),
        accessible=bool(record.accessible),
    )


def apply_visit(record: VisitRecord, visit: Visit) -> VisitRecord:
    record.title = visit.title
    record.place = visit.place
    record.categories = format_category_list(visit.categories)
    record.guide_email = visit.guide_email
    record.visit_date = visit.visit_date
    record.start_time = visit.start_time
    record.duration_minutes = visit.duration_minutes
    record.capacity = visit.capacity
    record.min_participants = visit.min_participants
    record.reserved_seats = visit.reserved_seats
    record.state = visit.state.value
    record.ticket_required = visit.ticket_required
    record.accessible = visit.accessible
    return record


class SqlAlchemyStore(TourStore):
    """Store backed by the tables in models.py"""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        if session_factory is None:
            from ..database import SessionLocal

            session_factory = SessionLocal
        self.session_factory = session_factory

    @contextmanager
    def _session(self, action: str):
        db: Session = self.session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Store error while {action}: {e}")
            raise StoreError(f"Failed {action}") from e
        finally:
            db.close()

    # Visits
    def load_visits(self) -> list[Visit]:
        visits = []
        with self._session("loading visits") as db:
            for record in db.query(VisitRecord).order_by(VisitRecord.id).all():
                try:
                    visits.append(visit_from_record(record))
                except (ValidationError, ValueError) as e:
                    logger.warning(f"⚠️ Skipping malformed visit row {record.id}: {e}")
        return visits

    def add_visit(self, visit: Visit) -> bool:
        with self._session(f"adding visit {visit.id}") as db:
            duplicate = (
                db.query(VisitRecord)
                .filter(
                    VisitRecord.place == visit.place,
                    VisitRecord.visit_date == visit.visit_date,
                    VisitRecord.guide_email == visit.guide_email,
                    VisitRecord.start_time == visit.start_time,
                )
                .first()
            )
            if duplicate:
                logger.info(f"Visit already exists at {visit.place} on {visit.visit_date}")
                return False

            db.add(apply_visit(VisitRecord(id=visit.id), visit))
            db.commit()
            return True

    def save_visit(self, visit: Visit) -> bool:
        with self._session(f"saving visit {visit.id}") as db:
            record = db.query(VisitRecord).filter(VisitRecord.id == visit.id).first()
            if record is None:
                record = VisitRecord(id=visit.id)
                db.add(record)
            apply_visit(record, visit)
            db.commit()
            return True

    # Blackout dates
    def load_blackout_dates(self) -> dict[date, str]:
        with self._session("loading blackout dates") as db:
            return {
                r.blackout_date: r.reason or ""
                for r in db.query(BlackoutDateRecord).order_by(BlackoutDateRecord.blackout_date)
            }

    def add_blackout_date(self, day: date, reason: str) -> bool:
        with self._session(f"adding blackout date {day}") as db:
            exists = (
                db.query(BlackoutDateRecord).filter(BlackoutDateRecord.blackout_date == day).first()
            )
            if exists:
                logger.debug(f"Blackout date {day} already exists")
                return True
            db.add(BlackoutDateRecord(blackout_date=day, reason=reason))
            db.commit()
            return True

    def remove_blackout_date(self, day: date) -> bool:
        with self._session(f"removing blackout date {day}") as db:
            deleted = (
                db.query(BlackoutDateRecord)
                .filter(BlackoutDateRecord.blackout_date == day)
                .delete(synchronize_session=False)
            )
            db.commit()
            return deleted > 0

    # Availability
    def load_availability(self, guide_email: str) -> list[date]:
        with self._session(f"loading availability for {guide_email}") as db:
            rows = (
                db.query(AvailabilityRecord.available_date)
                .join(GuideRecord, AvailabilityRecord.guide_id == GuideRecord.id)
                .filter(GuideRecord.email == guide_email.lower())
                .order_by(AvailabilityRecord.available_date)
                .all()
            )
            return [row[0] for row in rows]

    def replace_availability(self, availability: dict[str, list[date]]) -> bool:
        if not availability:
            return True

        with self._session("replacing availability") as db:
            guide_ids = {}
            for email in availability:
                guide = db.query(GuideRecord).filter(GuideRecord.email == email.lower()).first()
                if guide is None:
                    logger.warning(f"⚠️ Availability for unknown guide {email} skipped")
                    continue
                guide_ids[email] = guide.id

            # Delete first, then insert, in one transaction
            if guide_ids:
                db.query(AvailabilityRecord).filter(
                    AvailabilityRecord.guide_id.in_(list(guide_ids.values()))
                ).delete(synchronize_session=False)

            for email, guide_id in guide_ids.items():
                for day in availability[email] or []:
                    db.add(AvailabilityRecord(guide_id=guide_id, available_date=day))

            db.commit()
            return True

    def set_collection_open(self, is_open: bool) -> None:
        with self._session("updating collection flag") as db:
            setting = (
                db.query(ApplicationSetting)
                .filter(ApplicationSetting.key == COLLECTION_OPEN_KEY)
                .first()
            )
            if setting is None:
                setting = ApplicationSetting(key=COLLECTION_OPEN_KEY)
                db.add(setting)
            setting.value = "true" if is_open else "false"
            db.commit()

    def is_collection_open(self) -> Optional[bool]:
        with self._session("reading collection flag") as db:
            setting = (
                db.query(ApplicationSetting)
                .filter(ApplicationSetting.key == COLLECTION_OPEN_KEY)
                .first()
            )
            if setting is None or setting.value is None:
                return None
            return setting.value == "true"

    # Reference data
    def load_places(self) -> list[Place]:
        places = []
        with self._session("loading places") as db:
            for record in db.query(PlaceRecord).order_by(PlaceRecord.name).all():
                try:
                    places.append(
                        Place(
                            name=record.name,
                            description=record.description or "",
                            location=record.location or "",
                            categories=parse_category_list(record.categories),
                        )
                    )
                except ValidationError as e:
                    logger.warning(f"⚠️ Skipping malformed place row {record.name}: {e}")
        return places

    def load_guides(self) -> list[Guide]:
        guides = []
        with self._session("loading guides") as db:
            for record in db.query(GuideRecord).order_by(GuideRecord.email).all():
                try:
                    guides.append(
                        Guide(
                            email=record.email,
                            first_name=record.first_name,
                            last_name=record.last_name,
                            categories=parse_category_list(record.categories),
                        )
                    )
                except ValidationError as e:
                    logger.warning(f"⚠️ Skipping malformed guide row {record.email}: {e}")
        return guides

    def load_categories(self) -> list[VisitCategory]:
        with self._session("loading categories") as db:
            return [
                VisitCategory(name=r.name, description=r.description or "")
                for r in db.query(VisitCategoryRecord).order_by(VisitCategoryRecord.name)
                if r.name and r.name.strip()
            ]

    def save_category(self, category: VisitCategory) -> bool:
        with self._session(f"saving category {category.name}") as db:
            exists = (
                db.query(VisitCategoryRecord)
                .filter(VisitCategoryRecord.name == category.name)
                .first()
            )
            if exists:
                return False
            db.add(VisitCategoryRecord(name=category.name, description=category.description))
            db.commit()
            return True
