import json

import pytest

import airbnb_flows
from airbnb_tools import BOOK_STEP, FILTER_STEP, SEARCH_STEP, StepAccumulator
from intents import DateRange, Destination, GuestCounts

from fakes import FakePage, RecordingFlows

SEOUL_CALLS = [
    ("selectDestination", {"destination": "Seoul"}),
    ("selectDates", {"checkIn": "03/20/2024", "checkOut": "03/22/2024"}),
    ("selectGuests", {"adults": 2, "children": 0, "infants": 0, "pets": 0}),
]


def _apply(accumulator, calls):
    for name, arguments in calls:
        accumulator.apply_tool_call(name, json.dumps(arguments))


@pytest.mark.parametrize("skipped", range(len(SEOUL_CALLS)))
def test_search_waits_for_destination_dates_and_guests(page, flows, fast_timings, skipped):
    accumulator = StepAccumulator(page, fast_timings, flows=flows)
    _apply(accumulator, [call for idx, call in enumerate(SEOUL_CALLS) if idx != skipped])

    accumulator.commit_pending()
    accumulator.commit_pending()

    assert flows.calls == []
    assert accumulator.flags.search_committed is False


def test_seoul_turn_runs_exactly_one_search(page, flows, fast_timings):
    steps = []
    accumulator = StepAccumulator(page, fast_timings, flows=flows)
    _apply(accumulator, SEOUL_CALLS)

    accumulator.commit_pending(steps.append)

    assert flows.calls == [
        (
            "search_destination",
            Destination("Seoul"),
            DateRange("03/20/2024", "03/22/2024"),
            GuestCounts(adults=2, children=0, infants=0, pets=0),
        )
    ]
    assert steps == [SEARCH_STEP]
    assert accumulator.flags.search_committed is True
    assert accumulator.flags.filters_committed is False
    assert accumulator.flags.booking_committed is False


def test_seoul_turn_on_the_page_only_steps_adults_twice(fast_timings):
    page = FakePage()
    accumulator = StepAccumulator(page, fast_timings, flows=airbnb_flows)
    _apply(accumulator, SEOUL_CALLS)

    accumulator.commit_pending()

    stepper_clicks = [selector for selector in page.clicks() if "increase-button" in selector]
    assert stepper_clicks == ["button[data-testid='stepper-adults-increase-button']"] * 2
    assert page.counters == {"adults": 2}
    assert accumulator.flags.search_committed is True


def test_search_runs_at_most_once_per_session(page, flows, fast_timings):
    accumulator = StepAccumulator(page, fast_timings, flows=flows)
    _apply(accumulator, SEOUL_CALLS)
    accumulator.commit_pending()

    accumulator.apply_tool_call("selectDestination", '{"destination": "Busan"}')
    accumulator.apply_tool_call("selectGuests", '{"adults": 4, "children": 0, "infants": 0, "pets": 0}')
    for _ in range(3):
        accumulator.commit_pending()

    assert flows.names() == ["search_destination"]


def test_commit_uses_latest_guest_counts(page, flows, fast_timings):
    accumulator = StepAccumulator(page, fast_timings, flows=flows)
    _apply(accumulator, SEOUL_CALLS)
    accumulator.apply_tool_call("selectGuests", '{"adults": 1, "children": 2, "infants": 0, "pets": 1}')

    accumulator.commit_pending()

    assert flows.calls[0][3] == GuestCounts(adults=1, children=2, infants=0, pets=1)


def test_booking_waits_for_search(page, flows, fast_timings):
    accumulator = StepAccumulator(page, fast_timings, flows=flows)
    accumulator.apply_tool_call("bookTopResult", "{}")

    accumulator.commit_pending()

    assert "select_top_result" not in flows.names()
    assert accumulator.flags.booking_committed is False


def test_booking_waits_for_filters(page, flows, fast_timings):
    accumulator = StepAccumulator(page, fast_timings, flows=flows)
    _apply(accumulator, SEOUL_CALLS)
    accumulator.apply_tool_call("bookTopResult", "{}")

    accumulator.commit_pending()

    assert flows.names() == ["search_destination"]
    assert accumulator.flags.booking_committed is False


def test_all_groups_run_in_one_commit_in_priority_order(page, flows, fast_timings):
    steps = []
    accumulator = StepAccumulator(page, fast_timings, flows=flows)
    # Tool order inside the turn does not matter.
    accumulator.apply_tool_call("bookTopResult", "{}")
    accumulator.apply_tool_call("selectFilters", '{"typeOfPlace": "Entire home"}')
    _apply(accumulator, SEOUL_CALLS)

    accumulator.commit_pending(steps.append)

    assert flows.names() == ["search_destination", "apply_filters", "select_top_result"]
    assert steps == [SEARCH_STEP, FILTER_STEP, BOOK_STEP]
    assert accumulator.flags.booking_committed is True


def test_step_is_reported_before_the_flow_starts(page, fast_timings):
    events = []
    flows = RecordingFlows(on_call=lambda name: events.append(("flow", name)))
    accumulator = StepAccumulator(page, fast_timings, flows=flows)
    _apply(accumulator, SEOUL_CALLS)

    accumulator.commit_pending(lambda step: events.append(("status", step)))

    assert events == [("status", SEARCH_STEP), ("flow", "search_destination")]


def test_failed_search_leaves_flag_unset_and_propagates(page, fast_timings):
    flows = RecordingFlows(fail_on={"search_destination"})
    accumulator = StepAccumulator(page, fast_timings, flows=flows)
    _apply(accumulator, SEOUL_CALLS)
    accumulator.apply_tool_call("selectFilters", '{"priceRangeMax": 150}')

    with pytest.raises(AssertionError):
        accumulator.commit_pending()

    assert accumulator.flags.search_committed is False
    assert flows.names() == ["search_destination"]

    flows.fail_on.clear()
    accumulator.commit_pending()
    assert flows.names() == ["search_destination", "search_destination", "apply_filters"]


def test_filters_only_need_to_be_present(page, flows, fast_timings):
    accumulator = StepAccumulator(page, fast_timings, flows=flows)
    accumulator.apply_tool_call("selectFilters", '{"instantBook": true}')

    accumulator.commit_pending()

    assert flows.names() == ["apply_filters"]
    assert accumulator.flags.filters_committed is True
    assert accumulator.flags.search_committed is False


def test_unknown_tool_does_not_trigger_anything(page, flows, fast_timings):
    accumulator = StepAccumulator(page, fast_timings, flows=flows)
    assert accumulator.apply_tool_call("cancelBooking", "{}") is False
    accumulator.commit_pending()
    assert flows.calls == []
