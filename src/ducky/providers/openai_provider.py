import openai
from loguru import logger

from ducky.conversation.models import Message, Role
from ducky.errors import ServiceError
from ducky.providers.common import waiting_spinner


def _to_openai_messages(messages: list[Message]) -> list[dict]:
    return [{"role": m.role.value, "content": m.content} for m in messages]


class OpenAIProvider:
    def __init__(self, api_key: str, *, show_spinner: bool = True):
        self._client = openai.AsyncOpenAI(api_key=api_key)
        self._show_spinner = show_spinner

    async def complete(self, model: str, messages: list[Message]) -> Message:
        oai_messages = _to_openai_messages(messages)
        logger.debug(f"API request: model={model}, messages={len(oai_messages)}")
        try:
            with waiting_spinner(self._show_spinner):
                response = await self._client.chat.completions.create(
                    model=model,
                    messages=oai_messages,
                )
        except openai.OpenAIError as ex:
            raise ServiceError(f"{type(ex).__name__}: {ex}") from ex

        if not response.choices:
            raise ServiceError("Completion service returned no choices")
        choice = response.choices[0]
        text = choice.message.content or ""
        logger.debug(f"API response: finish_reason={choice.finish_reason}, text_len={len(text)}")
        return Message(role=Role.ASSISTANT, content=text)
