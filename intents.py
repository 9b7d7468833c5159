from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class DecodeError(ValueError):
    """A known tool was called with arguments that do not fit its schema."""

    def __init__(self, tool: str, message: str):
        self.tool = tool
        super().__init__(f"[{tool}] {message}")


class TypeOfPlace(str, Enum):
    ANY_TYPE = "Any type"
    ROOM = "Room"
    ENTIRE_HOME = "Entire home"


# One dataclass per piece of the trip the LLM can tell us about.
@dataclass(frozen=True)
class Destination:
    name: str


@dataclass(frozen=True)
class DateRange:
    check_in: str  # MM/DD/YYYY
    check_out: str


@dataclass(frozen=True)
class GuestCounts:
    adults: int
    children: int
    infants: int
    pets: int

    def nonzero(self):
        """(category, count) pairs in stepper order, skipping zero counts."""
        ordered = (
            ("adults", self.adults),
            ("children", self.children),
            ("infants", self.infants),
            ("pets", self.pets),
        )
        return [(name, count) for name, count in ordered if count > 0]


@dataclass(frozen=True)
class Filters:
    type_of_place: Optional[TypeOfPlace] = None
    price_min: Optional[int] = None
    price_max: Optional[int] = None
    instant_book: Optional[bool] = None


@dataclass(frozen=True)
class BookRequested:
    flag: bool = True


Intent = Union[Destination, DateRange, GuestCounts, Filters, BookRequested]

_SLOTS = {
    Destination: "destination",
    DateRange: "dates",
    GuestCounts: "guests",
    Filters: "filters",
    BookRequested: "book",
}


@dataclass
class PendingIntents:
    """Latest decoded value per intent kind. A later value replaces an earlier one."""

    destination: Optional[Destination] = None
    dates: Optional[DateRange] = None
    guests: Optional[GuestCounts] = None
    filters: Optional[Filters] = None
    book: Optional[BookRequested] = None

    def store(self, intent: Intent) -> None:
        slot = _SLOTS.get(type(intent))
        if slot is None:
            raise TypeError(f"Unsupported intent type: {type(intent).__name__}")
        setattr(self, slot, intent)

    @property
    def search_ready(self) -> bool:
        return self.destination is not None and self.dates is not None and self.guests is not None

    @property
    def book_requested(self) -> bool:
        return self.book is not None and self.book.flag


@dataclass
class CommitFlags:
    search_committed: bool = False
    filters_committed: bool = False
    booking_committed: bool = False
