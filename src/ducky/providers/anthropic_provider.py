import anthropic
from loguru import logger

from ducky.conversation.models import Message, Role
from ducky.errors import ServiceError
from ducky.providers.common import waiting_spinner

_MAX_TOKENS = 8192


def _to_anthropic_messages(messages: list[Message]) -> tuple[str, list[dict]]:
    """Split out system messages and merge consecutive same-role turns.

    A trailing system message is repeated as the final user turn when the
    converted list would otherwise be empty or end on an assistant reply.

    Returns (system_prompt, messages) in Anthropic messages-API format.
    """
    system_parts: list[str] = []
    out: list[dict] = []
    for msg in messages:
        if msg.role is Role.SYSTEM:
            system_parts.append(msg.content)
            continue
        if out and out[-1]["role"] == msg.role.value:
            out[-1]["content"] += "\n\n" + msg.content
            continue
        out.append({"role": msg.role.value, "content": msg.content})
    if messages and messages[-1].role is Role.SYSTEM and (not out or out[-1]["role"] == "assistant"):
        out.append({"role": "user", "content": messages[-1].content})
    return "\n\n".join(system_parts), out


class AnthropicProvider:
    def __init__(self, api_key: str, *, show_spinner: bool = True):
        self._client = anthropic.AsyncAnthropic(api_key=api_key)
        self._show_spinner = show_spinner

    async def complete(self, model: str, messages: list[Message]) -> Message:
        system_prompt, anthropic_messages = _to_anthropic_messages(messages)
        logger.debug(f"API request: model={model}, messages={len(anthropic_messages)}")
        kwargs: dict = dict(
            model=model,
            max_tokens=_MAX_TOKENS,
            messages=anthropic_messages,
        )
        if system_prompt:
            kwargs["system"] = system_prompt
        try:
            with waiting_spinner(self._show_spinner):
                response = await self._client.messages.create(**kwargs)
        except anthropic.AnthropicError as ex:
            raise ServiceError(f"{type(ex).__name__}: {ex}") from ex

        text = "".join(block.text for block in response.content if block.type == "text")
        usage = response.usage
        logger.debug(
            f"API response: stop_reason={response.stop_reason}, "
            f"input_tokens={usage.input_tokens}, output_tokens={usage.output_tokens}"
        )
        return Message(role=Role.ASSISTANT, content=text)
