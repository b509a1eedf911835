"""Store interface the scheduling engine persists its decisions through"""

from abc import ABC, abstractmethod
from datetime import date

from ..schemas import Guide, Place, Visit, VisitCategory


class StoreError(Exception):
    """Raised when the backing store is unreachable or rejects a write"""


class TourStore(ABC):
    """
    Persistence boundary. Implementations raise StoreError on failure; the
    engine catches it, logs it and keeps its in-memory state.
    """

    # Visits
    @abstractmethod
    def load_visits(self) -> list[Visit]: ...

    @abstractmethod
    def add_visit(self, visit: Visit) -> bool:
        """Insert a new visit; False if an identical one (place/date/guide/start) exists"""

    @abstractmethod
    def save_visit(self, visit: Visit) -> bool: ...

    # Blackout dates
    @abstractmethod
    def load_blackout_dates(self) -> dict[date, str]: ...

    @abstractmethod
    def add_blackout_date(self, day: date, reason: str) -> bool:
        """Idempotent: adding an existing date is a successful no-op"""

    @abstractmethod
    def remove_blackout_date(self, day: date) -> bool: ...

    # Availability
    @abstractmethod
    def load_availability(self, guide_email: str) -> list[date]: ...

    @abstractmethod
    def replace_availability(self, availability: dict[str, list[date]]) -> bool:
        """Delete-then-insert every listed guide's dates"""

    @abstractmethod
    def set_collection_open(self, is_open: bool) -> None: ...

    # Reference data
    @abstractmethod
    def load_places(self) -> list[Place]: ...

    @abstractmethod
    def load_guides(self) -> list[Guide]: ...

    @abstractmethod
    def load_categories(self) -> list[VisitCategory]: ...

    @abstractmethod
    def save_category(self, category: VisitCategory) -> bool: ...
