# session.py
"""Runs one booking session: login, then the agent loop until it says DONE.

This is the only place that catches errors from the agent. Whatever goes
wrong (bad tool arguments, a page assertion, a timeout) ends the session
with a failure status.
"""

import re
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import airbnb_flows
from agent import Agent
from airbnb_tools import StepAccumulator
from settings import AgentSettings


class StatusKind(Enum):
    LOGIN = "login"
    WORKING = "working"
    DONE = "done"
    FAILURE = "failure"


@dataclass(frozen=True)
class Status:
    kind: StatusKind
    action: str = ""

    @classmethod
    def login(cls) -> "Status":
        return cls(StatusKind.LOGIN)

    @classmethod
    def working(cls, action: str) -> "Status":
        return cls(StatusKind.WORKING, action)

    @classmethod
    def done(cls) -> "Status":
        return cls(StatusKind.DONE)

    @classmethod
    def failure(cls) -> "Status":
        return cls(StatusKind.FAILURE)

    def label(self) -> str:
        if self.kind is StatusKind.LOGIN:
            return "👤 Logging in"
        if self.kind is StatusKind.WORKING:
            return f"🤖 {self.action}"
        if self.kind is StatusKind.DONE:
            return "👤 Done. Presenting your results"
        return "❌ Automation failed"


StatusSink = Callable[[Status], None]


def print_status(status: Status) -> None:
    print(status.label())


class StepBudgetExceeded(RuntimeError):
    def __init__(self, max_steps: int):
        self.max_steps = max_steps
        super().__init__(f"No completion after {max_steps} agent steps")


@dataclass
class SessionResult:
    status: Status
    message: str
    steps: int
    error: Optional[BaseException] = None
    screenshot_path: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status.kind is StatusKind.DONE


def _slugify(value: str, max_tokens: int = 4) -> str:
    tokens = [tok for tok in re.split(r"\W+", value.lower()) if tok]
    return "_".join(tokens[:max_tokens]) or "session"


class BookingSession:
    def __init__(
        self,
        page,
        settings: Optional[AgentSettings] = None,
        on_status: StatusSink = print_status,
        client=None,
        flows=airbnb_flows,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.page = page
        self.settings = settings or AgentSettings()
        self.on_status = on_status
        self.client = client
        self.flows = flows
        self.sleep = sleep
        self.agent: Optional[Agent] = None

    def run(self, prompt: str) -> SessionResult:
        self.on_status(Status.login())
        try:
            self.flows.login(
                self.page, self.settings.timings, self.settings.login_url, self.settings.home_url
            )
            if not prompt or not prompt.strip():
                print("  • No trip request given; nothing to do after login.")
                return self._finish(Status.done(), "", prompt)

            self.on_status(Status.working("GPT thinking"))
            tools = StepAccumulator(self.page, self.settings.timings, flows=self.flows)
            self.agent = Agent(
                tools,
                self.settings,
                client=self.client,
                on_step=lambda step_name: self.on_status(Status.working(step_name)),
            )
            message = self._drive(prompt)
        except Exception as exc:
            print(f"❌ Automation failed: {exc}")
            return self._finish(Status.failure(), str(exc), prompt, error=exc)

        print(f"🏁 {message}")
        return self._finish(Status.done(), message, prompt)

    def _drive(self, prompt: str) -> str:
        agent = self.agent
        result = agent.step(prompt)
        while not result.done:
            if agent.steps_taken >= self.settings.max_steps:
                raise StepBudgetExceeded(self.settings.max_steps)
            self.sleep(self.settings.step_interval_s)
            result = agent.step(None)
        return result.message

    def _finish(
        self,
        status: Status,
        message: str,
        prompt: str,
        error: Optional[BaseException] = None,
    ) -> SessionResult:
        screenshot_path = self._capture_final_state(prompt, status)
        self.on_status(status)
        return SessionResult(
            status=status,
            message=message,
            steps=self.agent.steps_taken if self.agent else 0,
            error=error,
            screenshot_path=screenshot_path,
        )

    def _capture_final_state(self, prompt: str, status: Status) -> Optional[str]:
        if not self.settings.capture_dir:
            return None
        try:
            capture_dir = Path(self.settings.capture_dir)
            capture_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
            path = capture_dir / f"{timestamp}_{status.kind.value}_{_slugify(prompt)}.png"
            self.page.screenshot(path=str(path), full_page=True)
            print(f"📸 Screenshot saved: {path}")
            return str(path)
        except Exception as exc:
            print(f"  • Final screenshot failed: {exc}")
            return None
