# airbnb_flows.py
"""Playwright recipes that carry out the Airbnb page interactions.

Each function drives the live page through one multi-step UI flow. Waits are
always bounded. A required element that never shows up raises
``PageAssertionError`` naming it; network waits that time out raise
Playwright's ``TimeoutError``. Nothing here retries or rolls back clicks.
"""

from playwright.sync_api import TimeoutError as PWTimeoutError

from intents import DateRange, Destination, Filters, GuestCounts
from settings import HOME_URL, LOGIN_URL, StepTimings


class PageAssertionError(AssertionError):
    """The page is not in the state a flow expects."""


SCROLL_CENTER_JS = "el => el.scrollIntoView({ block: 'center' })"
SCROLL_INTO_VIEW_JS = "el => el.scrollIntoView()"
SCROLL_ABOVE_JS = "el => { el.scrollIntoView(); window.scrollBy({ top: -200 }); }"
CLEAR_INPUT_JS = """el => {
    el.focus();
    el.select();
    document.execCommand('selectAll');
    document.execCommand('Delete');
}"""
COUNTER_MATCHES_JS = """([selector, expected]) => {
    const el = document.querySelector(selector);
    return !!el && (el.textContent || '').trim() === expected;
}"""

SEARCH_RESULTS_RESPONSE = "/StaysSearch/"
CHECKOUT_RESPONSE = "stayCheckout"


def _xpath_literal(value: str) -> str:
    """Quote ``value`` for use inside an XPath expression."""
    if "'" not in value:
        return f"'{value}'"
    if '"' not in value:
        return f'"{value}"'
    parts = value.split("'")
    return "concat(" + ", \"'\", ".join(f"'{part}'" for part in parts) + ")"


def _require(page, selector: str, what: str, timeout: int, visible: bool = True):
    try:
        handle = page.wait_for_selector(
            selector, state="visible" if visible else "attached", timeout=timeout
        )
    except PWTimeoutError as exc:
        raise PageAssertionError(f"Could not find {what} ({selector})") from exc
    if handle is None:
        raise PageAssertionError(f"Could not find {what} ({selector})")
    return handle


def _optional(page, selector: str, timeout: int):
    """Return the element if it shows up within ``timeout``, otherwise None."""
    try:
        return page.wait_for_selector(selector, state="visible", timeout=timeout)
    except PWTimeoutError:
        return None


def _pause(page, ms: int) -> None:
    if ms > 0:
        page.wait_for_timeout(ms)


def _response_matcher(fragment: str):
    return lambda response: fragment in response.url


def login(page, timings: StepTimings, login_url: str = LOGIN_URL, home_url: str = HOME_URL) -> None:
    """Open the login page and wait for the user to finish signing in.

    Landing back on the home page is taken as a successful login.
    """
    page.goto(login_url, wait_until="networkidle")
    target = home_url.rstrip("/")
    # "commit" keeps third-party (Apple/Google) sign-in redirects from failing the wait.
    page.wait_for_url(
        lambda url: url.rstrip("/") == target,
        timeout=timings.login_timeout_ms,
        wait_until="commit",
    )


def _increase_guests(page, category: str, count: int, timings: StepTimings) -> None:
    stepper = _require(
        page,
        f"button[data-testid='stepper-{category}-increase-button']",
        f"increase button for {category}",
        timings.element_timeout_ms,
    )
    value_selector = f"span[data-testid='stepper-{category}-value']"
    for clicked in range(1, count + 1):
        stepper.click()
        try:
            page.wait_for_function(
                COUNTER_MATCHES_JS,
                arg=[value_selector, str(clicked)],
                timeout=timings.element_timeout_ms,
            )
        except PWTimeoutError as exc:
            raise PageAssertionError(
                f"{category} counter did not reach {clicked} after clicking increase"
            ) from exc

    counter = _require(page, value_selector, f"{category} counter", timings.element_timeout_ms, visible=False)
    shown = counter.text_content()
    if (shown or "").strip() != str(count):
        raise PageAssertionError(
            f"{category} guests do not match: {shown if shown is not None else 'no value'} vs {count}"
        )


def search_destination(
    page,
    destination: Destination,
    dates: DateRange,
    guests: GuestCounts,
    timings: StepTimings,
) -> None:
    """Fill in destination, dates and guests, then submit the search."""
    wait = timings.element_timeout_ms

    opener = _require(
        page, "button[aria-describedby='searchInputDescriptionId']", "search input button", wait
    )
    opener.click()

    # Only the compact layout shows this intermediate button.
    destinations_button = _optional(
        page, "xpath=//button[contains(string(), 'Search destinations')]", timings.optional_timeout_ms
    )
    if destinations_button is not None:
        destinations_button.click()

    query_input = _require(page, "input[data-testid='search_query_input']", "destination input", wait)
    _pause(page, timings.settle_ms)
    query_input.click()
    query_input.press_sequentially(destination.name, delay=timings.typing_delay_ms)

    option = _require(
        page,
        "xpath=//div[contains(@data-testid, 'option-') and contains(string(), "
        f"{_xpath_literal(destination.name)})]",
        f"suggestion for '{destination.name}'",
        wait,
    )
    option.click()

    _require(page, "xpath=//div[@id='accordion-body-/homes-when']", "date picker", wait)

    check_in = _require(
        page, f"div[data-testid='calendar-day-{dates.check_in}']", f"check-in date {dates.check_in}", wait
    )
    check_in.click()
    _pause(page, timings.settle_ms)

    check_out = _require(
        page, f"div[data-testid='calendar-day-{dates.check_out}']", f"check-out date {dates.check_out}", wait
    )
    check_out.click()
    _pause(page, timings.settle_ms)

    next_button = _require(page, "div[data-testid='dates-footer-primary-btn']", "next button on dates", wait)
    next_button.click()

    _require(page, "xpath=//div[@id='accordion-body-/homes-who']", "guest picker", wait)

    for category, count in guests.nonzero():
        _increase_guests(page, category, count, timings)
        _pause(page, timings.settle_ms)

    search_button = _require(page, "*[data-testid='explore-footer-primary-btn']", "search button", wait)
    search_button.click()
    page.wait_for_load_state("load", timeout=timings.network_timeout_ms)


def _clear_and_type(page, field, value: int, timings: StepTimings) -> None:
    page.evaluate(SCROLL_CENTER_JS, field)
    _pause(page, timings.scroll_settle_ms)
    page.evaluate(CLEAR_INPUT_JS, field)
    _pause(page, timings.settle_ms)
    field.press_sequentially(str(value), delay=timings.typing_delay_ms)


def apply_filters(page, filters: Filters, timings: StepTimings) -> None:
    """Open the filter panel, set every present field and submit."""
    wait = timings.element_timeout_ms

    filter_button = _require(page, "button[aria-label='Show filters']", "filters button", wait)
    filter_button.click()
    _require(page, "xpath=//header[contains(string(), 'Filters')]", "filters panel", wait)

    if filters.type_of_place is not None:
        place = filters.type_of_place.value
        place_button = _require(
            page,
            f"button[aria-describedby='room-filter-description-{place}']",
            f"type of place button '{place}'",
            wait,
        )
        page.evaluate(SCROLL_CENTER_JS, place_button)
        _pause(page, timings.scroll_settle_ms)
        place_button.click()
        _pause(page, timings.settle_ms)

    if filters.price_min is not None:
        price_min = _require(page, "input#price_filter_min", "minimum price input", wait)
        _clear_and_type(page, price_min, filters.price_min, timings)

    if filters.price_max is not None:
        price_max = _require(page, "input#price_filter_max", "maximum price input", wait)
        _clear_and_type(page, price_max, filters.price_max, timings)

    # False means "no preference": the toggle is left as it is.
    if filters.instant_book:
        instant_book = _require(page, "button#ib", "instant book toggle", wait)
        page.evaluate(SCROLL_ABOVE_JS, instant_book)
        _pause(page, timings.scroll_settle_ms)
        instant_book.click()
        _pause(page, timings.settle_ms)

    # Always submit so the panel closes, even when nothing changed.
    submit = _require(page, "footer > a", "show results button", wait)
    with page.expect_response(
        _response_matcher(SEARCH_RESULTS_RESPONSE), timeout=timings.network_timeout_ms
    ):
        submit.click()


def select_top_result(page, timings: StepTimings) -> None:
    """Open the first listing and press its booking button."""
    wait = timings.element_timeout_ms

    listing = _require(
        page, "xpath=//div[@itemprop='itemListElement']/descendant::a", "top listing link", wait
    )
    page.evaluate(SCROLL_INTO_VIEW_JS, listing)
    with page.expect_response(_response_matcher(CHECKOUT_RESPONSE), timeout=timings.network_timeout_ms):
        listing.click()

    close_translation = _optional(
        page,
        "div[aria-label='Translation on'] button[aria-label='Close']",
        timings.optional_timeout_ms,
    )
    if close_translation is not None:
        close_translation.click()
        _pause(page, timings.scroll_settle_ms)

    book_button = _require(page, "button[data-testid='homes-pdp-cta-btn']", "booking button", wait)
    page.evaluate(SCROLL_INTO_VIEW_JS, book_button)
    book_button.click()
