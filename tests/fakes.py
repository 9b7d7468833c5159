"""Stand-ins for the Playwright page, the OpenAI client and the page flows."""

import copy
import json
import re
from contextlib import contextmanager
from types import SimpleNamespace

from playwright.sync_api import TimeoutError as PWTimeoutError

STEPPER_BUTTON = re.compile(r"stepper-(\w+)-increase-button")
STEPPER_VALUE = re.compile(r"span\[data-testid='stepper-(\w+)-value'\]")

SEARCH_RESPONSE_URL = "https://www.airbnb.com/api/v3/StaysSearch/abc123"
CHECKOUT_RESPONSE_URL = "https://www.airbnb.com/api/v3/stayCheckoutSections/xyz"


class FakeElement:
    def __init__(self, page, selector):
        self.page = page
        self.selector = selector

    def click(self):
        self.page.actions.append(("click", self.selector))
        match = STEPPER_BUTTON.search(self.selector)
        if match and match.group(1) not in self.page.stuck_steppers:
            category = match.group(1)
            self.page.counters[category] = self.page.counters.get(category, 0) + 1

    def press_sequentially(self, text, delay=None):
        self.page.actions.append(("type", self.selector, text))

    def text_content(self):
        return self.page.text_of(self.selector)


class FakePage:
    """Records what the flows do. Every selector exists unless listed in ``missing``."""

    def __init__(self, missing=(), responses=None, stuck_steppers=(), url_after_login="https://www.airbnb.com/"):
        self.missing = set(missing)
        self.responses = list(responses) if responses is not None else [SEARCH_RESPONSE_URL, CHECKOUT_RESPONSE_URL]
        self.stuck_steppers = set(stuck_steppers)
        self.url_after_login = url_after_login
        self.counters = {}
        self.actions = []

    def text_of(self, selector):
        match = STEPPER_VALUE.search(selector)
        if match:
            return str(self.counters.get(match.group(1), 0))
        return None

    def clicks(self):
        return [action[1] for action in self.actions if action[0] == "click"]

    def wait_for_selector(self, selector, state="visible", timeout=None):
        self.actions.append(("wait", selector))
        if selector in self.missing:
            raise PWTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")
        return FakeElement(self, selector)

    def wait_for_function(self, expression, arg=None, timeout=None):
        selector, expected = arg
        if self.text_of(selector) != expected:
            raise PWTimeoutError(f"Timeout {timeout}ms exceeded waiting for function")
        return True

    def wait_for_timeout(self, ms):
        self.actions.append(("pause", ms))

    def wait_for_load_state(self, state="load", timeout=None):
        self.actions.append(("load_state", state))

    def evaluate(self, expression, arg=None):
        self.actions.append(("evaluate", expression, getattr(arg, "selector", arg)))

    @contextmanager
    def expect_response(self, url_or_predicate, timeout=None):
        self.actions.append(("expect_response",))
        info = SimpleNamespace(value=None)
        yield info
        for url in self.responses:
            response = SimpleNamespace(url=url)
            if url_or_predicate(response):
                info.value = response
                return
        raise PWTimeoutError(f"Timeout {timeout}ms exceeded while waiting for response")

    def goto(self, url, wait_until=None):
        self.actions.append(("goto", url))

    def wait_for_url(self, predicate, timeout=None, wait_until=None):
        self.actions.append(("wait_for_url", timeout))
        if not predicate(self.url_after_login):
            raise PWTimeoutError(f"Timeout {timeout}ms exceeded waiting for URL")

    def screenshot(self, path=None, full_page=False):
        self.actions.append(("screenshot", path))


class RecordingFlows:
    """Replaces ``airbnb_flows``; remembers every call and can be told to fail."""

    def __init__(self, fail_on=(), error=None, on_call=None):
        self.calls = []
        self.fail_on = set(fail_on)
        self.error = error or AssertionError("flow failed")
        self.on_call = on_call

    def _record(self, name, *args):
        if self.on_call is not None:
            self.on_call(name)
        self.calls.append((name,) + args)
        if name in self.fail_on:
            raise self.error

    def names(self):
        return [call[0] for call in self.calls]

    def login(self, page, timings, login_url, home_url):
        self._record("login", login_url, home_url)

    def search_destination(self, page, destination, dates, guests, timings):
        self._record("search_destination", destination, dates, guests)

    def apply_filters(self, page, filters, timings):
        self._record("apply_filters", filters)

    def select_top_result(self, page, timings):
        self._record("select_top_result")


def tool_call(call_id, name, arguments=None):
    if arguments is None:
        arguments = "{}"
    elif not isinstance(arguments, str):
        arguments = json.dumps(arguments)
    return SimpleNamespace(
        id=call_id,
        type="function",
        function=SimpleNamespace(name=name, arguments=arguments),
    )


def assistant(content=None, tool_calls=()):
    return SimpleNamespace(content=content, tool_calls=list(tool_calls) or None)


class FakeChatClient:
    """Returns scripted assistant messages in order; optionally repeats the last one."""

    def __init__(self, replies, repeat_last=False):
        self.replies = list(replies)
        self.repeat_last = repeat_last
        self.requests = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.requests.append(copy.deepcopy(kwargs))
        if not self.replies:
            raise AssertionError("no scripted reply left")
        reply = self.replies[0] if self.repeat_last and len(self.replies) == 1 else self.replies.pop(0)
        return SimpleNamespace(choices=[SimpleNamespace(message=reply)])
