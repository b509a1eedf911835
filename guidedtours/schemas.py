"""Domain entities shared by the scheduling engine - Pydantic models"""

from datetime import date, time
from enum import Enum
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from .shared.validators import normalize_category_names, validate_email


class VisitState(str, Enum):
    """Visit lifecycle state; values are the labels persisted by the store"""

    PROPOSED = "Proposta"
    COMPLETE = "Completa"
    CONFIRMED = "Confermata"
    CANCELLED = "Cancellata"
    HELD = "Effettuata"

    @classmethod
    def _missing_(cls, value):
        # Accept "CANCELLATA", "cancelled", "Cancelled", ...
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if wanted in (member.value.lower(), member.name.lower()):
                    return member
            if wanted == "canceled":
                return cls.CANCELLED
        return None

    @property
    def is_terminal(self) -> bool:
        return self in (VisitState.CANCELLED, VisitState.HELD)


class VisitCategory(BaseModel):
    """A named visit theme (e.g. historical, scientific)"""

    name: str
    description: str = ""

    class Config:
        frozen = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Category name cannot be empty")
        return v


class Place(BaseModel):
    """A physical site offering one or more visit categories"""

    name: str
    description: str = ""
    location: str = ""
    categories: list[str] = []

    class Config:
        frozen = True

    @field_validator("categories")
    @classmethod
    def validate_categories(cls, v):
        return normalize_category_names(v)

    def offers(self, category: str) -> bool:
        wanted = category.strip().lower()
        return any(c.lower() == wanted for c in self.categories)


class Guide(BaseModel):
    """Volunteer guide; identity is the (case-insensitive) email"""

    email: str
    first_name: str
    last_name: str
    categories: list[str] = []

    class Config:
        frozen = True

    @field_validator("email")
    @classmethod
    def validate_guide_email(cls, v):
        return validate_email(v)

    @field_validator("categories")
    @classmethod
    def validate_categories(cls, v):
        return normalize_category_names(v)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def is_qualified_for(self, category: str) -> bool:
        wanted = category.strip().lower()
        return any(c.lower() == wanted for c in self.categories)


class Visit(BaseModel):
    """
    Scheduled guided tour instance.

    Instances are immutable: every change produces a new object through
    ``model_copy(update=...)`` which is then stored back by id, so readers on
    other threads never observe a half-updated visit.
    """

    id: int
    title: str
    place: str
    categories: list[str] = []
    guide_email: Optional[str] = None
    visit_date: date
    start_time: Optional[time] = None
    duration_minutes: int = 0
    capacity: int
    min_participants: int = 0
    reserved_seats: int = 0
    state: VisitState = VisitState.PROPOSED
    ticket_required: bool = False
    accessible: bool = False

    class Config:
        frozen = True

    @field_validator("categories")
    @classmethod
    def validate_categories(cls, v):
        return normalize_category_names(v)

    @field_validator("guide_email")
    @classmethod
    def validate_guide_email(cls, v):
        if v:
            return validate_email(v)
        return None

    @field_validator("duration_minutes", "capacity", "min_participants", "reserved_seats")
    @classmethod
    def validate_non_negative(cls, v):
        if v < 0:
            raise ValueError("Value cannot be negative")
        return v

    @model_validator(mode="after")
    def validate_seats(self):
        if self.reserved_seats > self.capacity:
            raise ValueError(
                f"Reserved seats ({self.reserved_seats}) exceed capacity ({self.capacity})"
            )
        return self

    @property
    def free_seats(self) -> int:
        return self.capacity - self.reserved_seats

    @property
    def is_scheduled(self) -> bool:
        return self.start_time is not None

    def is_assigned_to(self, guide_email: str) -> bool:
        return bool(self.guide_email) and self.guide_email == guide_email.strip().lower()


class VisitPlanRequest(BaseModel):
    """Free-form planning: the caller picks place, categories and date"""

    title: str
    place: str
    categories: list[str]
    visit_date: date
    start_time: Optional[time] = None
    duration_minutes: int
    guide_email: Optional[str] = None
    capacity: Optional[int] = None
    min_participants: int = 0
    ticket_required: bool = False
    accessible: bool = False

    @field_validator("title", "place")
    @classmethod
    def validate_not_blank(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Value cannot be empty")
        return v

    @field_validator("categories")
    @classmethod
    def validate_categories(cls, v):
        names = normalize_category_names(v)
        if not names:
            raise ValueError("At least one category is required")
        return names

    @field_validator("guide_email")
    @classmethod
    def validate_guide_email(cls, v):
        if v:
            return validate_email(v)
        return None

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, v):
        if v <= 0:
            raise ValueError("Duration must be positive")
        return v

    @model_validator(mode="after")
    def validate_participants(self):
        if self.min_participants < 0:
            raise ValueError("Minimum participants cannot be negative")
        if self.capacity is not None and self.min_participants > self.capacity:
            raise ValueError("Minimum participants exceed capacity")
        return self


class GuidedPlanRequest(BaseModel):
    """Planning driven by a guide's declared availability"""

    title: str
    guide_email: str
    visit_date: date
    category: str
    place: Optional[str] = None
    start_time: time
    duration_minutes: int
    capacity: Optional[int] = None
    min_participants: int = 0
    ticket_required: bool = False
    accessible: bool = False

    @field_validator("guide_email")
    @classmethod
    def validate_guide_email(cls, v):
        return validate_email(v)

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, v):
        if v <= 0:
            raise ValueError("Duration must be positive")
        return v

    @model_validator(mode="after")
    def validate_participants(self):
        if self.min_participants < 0:
            raise ValueError("Minimum participants cannot be negative")
        if self.capacity is not None and self.min_participants > self.capacity:
            raise ValueError("Minimum participants exceed capacity")
        return self
