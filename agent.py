# agent.py
"""Conversation loop between the LLM and the Airbnb tools.

A simple agent that helps a user book a stay. The tools do the heavy lifting;
here we only keep the conversation, forward tool calls and tell the tools
when a batch of calls is complete.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from openai import OpenAI

from airbnb_tools import StepAccumulator, StepCallback
from settings import AgentSettings

TOOL_SUCCESS = "Success"
TOOL_UNKNOWN = "Unknown tool, ignored"


class AgentState(Enum):
    IDLE = "idle"
    AWAITING_COMPLETION = "awaiting_completion"
    DONE = "done"
    FAILED = "failed"


@dataclass
class StepResult:
    done: bool
    message: str


def _assistant_message(reply) -> Dict[str, Any]:
    message: Dict[str, Any] = {"role": "assistant", "content": reply.content}
    tool_calls = reply.tool_calls or []
    if tool_calls:
        message["tool_calls"] = [
            {
                "id": call.id,
                "type": "function",
                "function": {"name": call.function.name, "arguments": call.function.arguments},
            }
            for call in tool_calls
        ]
    return message


class Agent:
    def __init__(
        self,
        tools: StepAccumulator,
        settings: Optional[AgentSettings] = None,
        client=None,
        on_step: Optional[StepCallback] = None,
    ):
        self.tools = tools
        self.settings = settings or AgentSettings()
        self.client = client or OpenAI(api_key=self.settings.api_key)
        self.on_step = on_step
        self.messages: List[Dict[str, Any]] = []
        self.state = AgentState.IDLE
        self.steps_taken = 0

    def step(self, message: Optional[str] = None) -> StepResult:
        """Take a single turn in the conversation.

        Returns ``done=True`` together with the assistant text once the text
        contains the completion sentinel, otherwise ``done=False`` and an
        empty message. Any error marks the agent as failed and is re-raised.
        """
        if self.state in (AgentState.DONE, AgentState.FAILED):
            raise RuntimeError(f"Agent already finished ({self.state.value}); start a new session.")
        try:
            result = self._step(message)
        except Exception:
            self.state = AgentState.FAILED
            raise
        self.state = AgentState.DONE if result.done else AgentState.AWAITING_COMPLETION
        return result

    def _step(self, message: Optional[str]) -> StepResult:
        if not self.messages:
            self.messages.append({"role": "system", "content": self.settings.system_prompt})
        if message:
            self.messages.append({"role": "user", "content": message})

        response = self.client.chat.completions.create(
            model=self.settings.model,
            messages=self.messages,
            tools=[tool.as_openai_tool() for tool in self.tools.describe_tools()],
            n=1,
        )
        reply = response.choices[0].message
        self.messages.append(_assistant_message(reply))
        self.steps_taken += 1
        if self.settings.debug:
            print("COMPLETION", reply)

        for call in reply.tool_calls or []:
            name = call.function.name
            if self.tools.apply_tool_call(name, call.function.arguments):
                print(f"🔧 {name} {call.function.arguments}")
                self.messages.append({"role": "tool", "content": TOOL_SUCCESS, "tool_call_id": call.id})
                continue
            print(f"⚠️ Ignoring unknown tool call '{name}'")
            # Off by default: some providers reject a conversation where a
            # tool call has no matching tool message, others accept it.
            if self.settings.acknowledge_unknown_tools:
                self.messages.append({"role": "tool", "content": TOOL_UNKNOWN, "tool_call_id": call.id})

        # All tool calls for this turn are in; run whatever is ready.
        self.tools.commit_pending(self.on_step)

        text = reply.content or ""
        if self.settings.terminal_sentinel in text:
            return StepResult(done=True, message=text)
        return StepResult(done=False, message="")
