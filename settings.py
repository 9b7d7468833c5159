import os
import textwrap
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv


DEFAULT_SENTINEL = "DONE"

# {sentinel} is filled with the completion marker the agent loop watches for.
SYSTEM_PROMPT_TEMPLATE = textwrap.dedent(
    """
    You are an agent that helps a user book a trip on AirBnb. The user will provide you with details about
    their trip. You will use this information to navigate the AirBnb website and book the trip for them.
    You navigate the website by calling functions that interact with the website. If you are given dates
    without a specific year, assume the closest date in the future. All dates MUST be formatted as MM/DD/YYYY.

    When you are completely finished with the user's request you MUST reply with {sentinel}, but you MUST not reply with
    it before this.
    """
).strip()


def system_prompt_for(sentinel: str) -> str:
    return SYSTEM_PROMPT_TEMPLATE.format(sentinel=sentinel)


SYSTEM_PROMPT = system_prompt_for(DEFAULT_SENTINEL)

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_MAX_STEPS = 25
DEFAULT_STEP_INTERVAL_S = 2.0
DEFAULT_PROFILE_DIR = "profiles/airbnb"
DEFAULT_CAPTURE_DIR = "live_state_captures"
LOGIN_URL = "https://www.airbnb.com/login"
HOME_URL = "https://www.airbnb.com/"
MOBILE_USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_4 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.3.1 Mobile/15E148 Safari/604.1"
)

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class StepTimings:
    """Timeouts and fallback pauses for the page sequences, in milliseconds.

    Timeouts bound every wait. The pauses are only used where the site gives
    no observable signal to wait on.
    """

    element_timeout_ms: int = 30_000
    network_timeout_ms: int = 30_000
    login_timeout_ms: int = 180_000
    optional_timeout_ms: int = 3_000
    typing_delay_ms: int = 100
    settle_ms: int = 500
    scroll_settle_ms: int = 200


@dataclass
class AgentSettings:
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    system_prompt: str = SYSTEM_PROMPT
    terminal_sentinel: str = DEFAULT_SENTINEL
    timings: StepTimings = field(default_factory=StepTimings)
    step_interval_s: float = DEFAULT_STEP_INTERVAL_S
    max_steps: int = DEFAULT_MAX_STEPS
    acknowledge_unknown_tools: bool = False
    headless: bool = False
    profile_dir: str = DEFAULT_PROFILE_DIR
    user_agent: Optional[str] = MOBILE_USER_AGENT
    login_url: str = LOGIN_URL
    home_url: str = HOME_URL
    capture_dir: Optional[str] = DEFAULT_CAPTURE_DIR
    debug: bool = False


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in _TRUTHY:
        return True
    if normalized in _FALSY:
        return False
    print(f"  • Unrecognized {name} value '{raw}', using {default}.")
    return default


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        print(f"  • Unrecognized {name} value '{raw}', using {default}.")
        return default
    if value < minimum:
        print(f"  • {name}={value} is below {minimum}, using {default}.")
        return default
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw.strip())
    except ValueError:
        print(f"  • Unrecognized {name} value '{raw}', using {default}.")
        return default
    if value < 0:
        print(f"  • {name}={value} is below 0, using 0.")
        return 0.0
    return value


def _env_str(name: str, default: Optional[str]) -> Optional[str]:
    raw = os.environ.get(name)
    if raw is None:
        return default
    raw = raw.strip()
    return raw or default


def load_settings() -> AgentSettings:
    """Build settings from the environment (and a local .env file, if any)."""
    load_dotenv()

    base = StepTimings()
    timings = StepTimings(
        element_timeout_ms=_env_int("AIRBNB_AGENT_ELEMENT_TIMEOUT_MS", base.element_timeout_ms, minimum=1),
        network_timeout_ms=_env_int("AIRBNB_AGENT_NETWORK_TIMEOUT_MS", base.network_timeout_ms, minimum=1),
        login_timeout_ms=_env_int("AIRBNB_AGENT_LOGIN_TIMEOUT_MS", base.login_timeout_ms, minimum=1),
        optional_timeout_ms=_env_int(
            "AIRBNB_AGENT_OPTIONAL_TIMEOUT_MS", base.optional_timeout_ms, minimum=1
        ),
        typing_delay_ms=_env_int("AIRBNB_AGENT_TYPING_DELAY_MS", base.typing_delay_ms),
        settle_ms=_env_int("AIRBNB_AGENT_SETTLE_MS", base.settle_ms),
        scroll_settle_ms=_env_int("AIRBNB_AGENT_SCROLL_SETTLE_MS", base.scroll_settle_ms),
    )

    capture_dir = _env_str("AIRBNB_AGENT_CAPTURE_DIR", DEFAULT_CAPTURE_DIR)
    if capture_dir and capture_dir.lower() in _FALSY:
        capture_dir = None

    sentinel = _env_str("AIRBNB_AGENT_SENTINEL", DEFAULT_SENTINEL)

    return AgentSettings(
        api_key=_env_str("OPENAI_API_KEY", None),
        model=_env_str("AIRBNB_AGENT_MODEL", DEFAULT_MODEL),
        system_prompt=system_prompt_for(sentinel),
        terminal_sentinel=sentinel,
        timings=timings,
        step_interval_s=_env_float("AIRBNB_AGENT_STEP_INTERVAL_S", DEFAULT_STEP_INTERVAL_S),
        max_steps=_env_int("AIRBNB_AGENT_MAX_STEPS", DEFAULT_MAX_STEPS, minimum=1),
        acknowledge_unknown_tools=_env_flag("AIRBNB_AGENT_ACK_UNKNOWN_TOOLS", False),
        headless=_env_flag("AIRBNB_AGENT_HEADLESS", False),
        profile_dir=_env_str("AIRBNB_AGENT_PROFILE_DIR", DEFAULT_PROFILE_DIR),
        capture_dir=capture_dir,
        debug=_env_flag("AIRBNB_AGENT_DEBUG", False),
    )
