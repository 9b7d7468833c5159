# main.py
import os
import sys
from typing import List, Optional

from bots._profile_launch import clear_profile, launch_persistent, shutdown
from session import BookingSession
from settings import load_settings

DEFAULT_PROMPT = (
    "Please book me an Airbnb. I am going to Seoul, South Korea between Mar 25 and Mar 29. "
    "I am traveling with my wife. We want to rent an entire home and our budget is $100-150 per night. "
    "We prefer to stay at highly rated houses that have an instant booking option."
)


def _resolve_prompt(args: List[str]) -> str:
    """
    Resolve the trip request from CLI args, environment, or stdin.
    """
    if args:
        prompt = " ".join(args).strip()
        if prompt:
            return prompt

    env_prompt = os.environ.get("AIRBNB_AGENT_PROMPT", "").strip()
    if env_prompt:
        return env_prompt

    try:
        user_prompt = input("Tell me about your trip (Enter for the demo request): ").strip()
        if user_prompt:
            return user_prompt
    except EOFError:
        pass

    return DEFAULT_PROMPT


def main(argv: Optional[List[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    settings = load_settings()

    if "--logout" in args:
        if clear_profile(settings.profile_dir):
            print(f"👋 Logged out, removed {settings.profile_dir}")
        else:
            print(f"👋 Nothing to remove at {settings.profile_dir}")
        return 0

    prompt = _resolve_prompt(args)
    print(f"🎯 Trip request: {prompt}")

    playwright = None
    context = None
    try:
        playwright, context, page = launch_persistent(
            None,
            settings.profile_dir,
            headless=settings.headless,
            user_agent=settings.user_agent,
        )
        result = BookingSession(page, settings).run(prompt)
        if result.succeeded and not settings.headless:
            try:
                input("✅ Done. Inspect the page, then press Enter to close the browser…")
            except EOFError:
                pass
    finally:
        shutdown(playwright, context)

    return 0 if result.succeeded else 1


if __name__ == "__main__":
    sys.exit(main())
