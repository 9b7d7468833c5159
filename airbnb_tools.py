# airbnb_tools.py
"""Tools the LLM can call, and the accumulator that turns them into page actions.

The agent hands every tool call from a completion to ``apply_tool_call``; the
decoded values are only stored. Once the whole batch has been applied the
agent calls ``commit_pending`` which runs whichever page flows now have all
of their inputs. Each flow runs at most once per session.
"""

import copy
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import airbnb_flows
from intents import (
    BookRequested,
    CommitFlags,
    DateRange,
    DecodeError,
    Destination,
    Filters,
    GuestCounts,
    Intent,
    PendingIntents,
    TypeOfPlace,
)
from settings import StepTimings


StepCallback = Callable[[str], None]

SEARCH_STEP = "Searching destination"
FILTER_STEP = "Applying filters"
BOOK_STEP = "Selecting result"


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    parameters: Dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})

    def as_openai_tool(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": copy.deepcopy(self.parameters),
            },
        }


SELECT_DESTINATION = ToolDescriptor(
    name="selectDestination",
    description="Select a destination from the dropdown",
    parameters={
        "type": "object",
        "properties": {
            "destination": {"type": "string", "description": "the destination to select"},
        },
        "required": ["destination"],
    },
)

SELECT_DATES = ToolDescriptor(
    name="selectDates",
    description="Select the check-in and check-out dates",
    parameters={
        "type": "object",
        "properties": {
            "checkIn": {"type": "string", "description": "The check-in date, formatted as MM/DD/YYYY"},
            "checkOut": {"type": "string", "description": "The check-out date, formatted as MM/DD/YYYY"},
        },
        "required": ["checkIn", "checkOut"],
    },
)

SELECT_GUESTS = ToolDescriptor(
    name="selectGuests",
    description="Select the number of guests",
    parameters={
        "type": "object",
        "properties": {
            "adults": {"type": "integer", "description": "The number of adults", "minimum": 0},
            "children": {"type": "integer", "description": "The number of children", "minimum": 0},
            "infants": {"type": "integer", "description": "The number of infants", "minimum": 0},
            "pets": {"type": "integer", "description": "The number of pets", "minimum": 0},
        },
        "required": ["adults", "children", "infants", "pets"],
    },
)

SELECT_FILTERS = ToolDescriptor(
    name="selectFilters",
    description="Select filters to refine search results. Leave out any filter the user did not ask for.",
    parameters={
        "type": "object",
        "properties": {
            "typeOfPlace": {
                "type": "string",
                "description": "The type of place to filter by",
                "enum": [place.value for place in TypeOfPlace],
            },
            "priceRangeMin": {
                "type": "integer",
                "description": "The minimum price per night to filter by",
                "minimum": 0,
            },
            "priceRangeMax": {
                "type": "integer",
                "description": "The maximum price per night to filter by",
                "minimum": 0,
            },
            "instantBook": {
                "type": "boolean",
                "description": "Whether to filter by instant book availability",
            },
        },
        "required": [],
    },
)

BOOK_TOP_RESULT = ToolDescriptor(
    name="bookTopResult",
    description="Select the top, highest ranked AirBnB and go to the booking page",
)

TOOL_DESCRIPTORS = (SELECT_DESTINATION, SELECT_DATES, SELECT_GUESTS, SELECT_FILTERS, BOOK_TOP_RESULT)


def _load_arguments(tool: str, raw_arguments) -> Dict[str, Any]:
    if raw_arguments is None:
        return {}
    if isinstance(raw_arguments, (str, bytes)) and not raw_arguments.strip():
        return {}
    try:
        payload = json.loads(raw_arguments)
    except (TypeError, ValueError) as exc:
        raise DecodeError(tool, f"arguments are not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise DecodeError(tool, f"arguments must be a JSON object, got {type(payload).__name__}")
    return payload


def _string(tool: str, payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if value is None:
        raise DecodeError(tool, f"missing required field '{key}'")
    if not isinstance(value, str):
        raise DecodeError(tool, f"'{key}' must be a string")
    return value


def _count(tool: str, payload: Dict[str, Any], key: str, required: bool = True) -> Optional[int]:
    value = payload.get(key)
    if value is None:
        if required:
            raise DecodeError(tool, f"missing required field '{key}'")
        return None
    # bool is an int subclass; JSON true/false is not a count.
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(tool, f"'{key}' must be an integer")
    if value < 0:
        raise DecodeError(tool, f"'{key}' must not be negative")
    return value


def _decode_destination(tool: str, payload: Dict[str, Any]) -> Destination:
    return Destination(name=_string(tool, payload, "destination"))


def _decode_dates(tool: str, payload: Dict[str, Any]) -> DateRange:
    return DateRange(check_in=_string(tool, payload, "checkIn"), check_out=_string(tool, payload, "checkOut"))


def _decode_guests(tool: str, payload: Dict[str, Any]) -> GuestCounts:
    return GuestCounts(
        adults=_count(tool, payload, "adults"),
        children=_count(tool, payload, "children"),
        infants=_count(tool, payload, "infants"),
        pets=_count(tool, payload, "pets"),
    )


def _decode_filters(tool: str, payload: Dict[str, Any]) -> Filters:
    place = payload.get("typeOfPlace")
    type_of_place = None
    if place is not None:
        try:
            type_of_place = TypeOfPlace(place)
        except ValueError as exc:
            raise DecodeError(tool, f"unknown typeOfPlace {place!r}") from exc

    instant_book = payload.get("instantBook")
    if instant_book is not None and not isinstance(instant_book, bool):
        raise DecodeError(tool, "'instantBook' must be a boolean")

    return Filters(
        type_of_place=type_of_place,
        price_min=_count(tool, payload, "priceRangeMin", required=False),
        price_max=_count(tool, payload, "priceRangeMax", required=False),
        instant_book=instant_book,
    )


def _decode_book(tool: str, payload: Dict[str, Any]) -> BookRequested:
    return BookRequested()


_DECODERS: Dict[str, Callable[[str, Dict[str, Any]], Intent]] = {
    SELECT_DESTINATION.name: _decode_destination,
    SELECT_DATES.name: _decode_dates,
    SELECT_GUESTS.name: _decode_guests,
    SELECT_FILTERS.name: _decode_filters,
    BOOK_TOP_RESULT.name: _decode_book,
}


class ToolRegistry:
    """Declares the tools and decodes tool calls into ``PendingIntents``."""

    def __init__(self, pending: Optional[PendingIntents] = None):
        self.pending = pending if pending is not None else PendingIntents()

    def describe_tools(self) -> List[ToolDescriptor]:
        return list(TOOL_DESCRIPTORS)

    def apply_tool_call(self, name: str, raw_arguments) -> bool:
        """Store the intent for one tool call.

        Returns False for tool names we do not know. Raises ``DecodeError``
        when a known tool's arguments cannot be decoded; nothing is stored
        in that case.
        """
        decoder = _DECODERS.get(name)
        if decoder is None:
            return False
        payload = _load_arguments(name, raw_arguments)
        self.pending.store(decoder(name, payload))
        return True


class StepAccumulator:
    """Runs the search, filter and booking flows once their inputs are known."""

    def __init__(
        self,
        page,
        timings: Optional[StepTimings] = None,
        registry: Optional[ToolRegistry] = None,
        flows=airbnb_flows,
    ):
        self.page = page
        self.timings = timings or StepTimings()
        self.registry = registry or ToolRegistry()
        self.flows = flows
        self.flags = CommitFlags()

    @property
    def pending(self) -> PendingIntents:
        return self.registry.pending

    def describe_tools(self) -> List[ToolDescriptor]:
        return self.registry.describe_tools()

    def apply_tool_call(self, name: str, raw_arguments) -> bool:
        return self.registry.apply_tool_call(name, raw_arguments)

    def commit_pending(self, on_step: Optional[StepCallback] = None) -> None:
        pending = self.pending
        flags = self.flags

        if pending.search_ready and not flags.search_committed:
            _report(on_step, SEARCH_STEP)
            print(f"🔹 Searching {pending.destination.name} ({pending.dates.check_in} → {pending.dates.check_out})")
            self.flows.search_destination(
                self.page, pending.destination, pending.dates, pending.guests, self.timings
            )
            flags.search_committed = True

        # The filter panel only exists on the results page; the prompt and tool
        # order keep the LLM from sending filters before a search.
        if pending.filters is not None and not flags.filters_committed:
            _report(on_step, FILTER_STEP)
            print(f"🔹 Applying filters: {pending.filters}")
            self.flows.apply_filters(self.page, pending.filters, self.timings)
            flags.filters_committed = True

        if (
            pending.book_requested
            and not flags.booking_committed
            and flags.search_committed
            and flags.filters_committed
        ):
            _report(on_step, BOOK_STEP)
            print("🔹 Selecting the top result")
            self.flows.select_top_result(self.page, self.timings)
            flags.booking_committed = True


def _report(on_step: Optional[StepCallback], step_name: str) -> None:
    if on_step is not None:
        on_step(step_name)
