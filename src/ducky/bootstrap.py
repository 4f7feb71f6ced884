from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from ducky.app_config import AppConfig, RuntimeEnv, resolve_config_base
from ducky.conversation.models import DEFAULT_INCLUDES, ConversationRecord, Message
from ducky.conversation.store import ConversationStore, ensure_config_dir, new_record
from ducky.conversation.window import ContextWindowManager
from ducky.engines import DEFAULT_MODEL, resolve
from ducky.errors import ConfigurationError, ServiceError
from ducky.logging_config import default_consumers, setup_logging
from ducky.prompting import choose_model
from ducky.provider import CompletionService, create_provider
from ducky.session_naming import conversation_name


class OfflineService:
    """Stands in for a provider when the command makes no completion call."""

    async def complete(self, model: str, messages: list[Message]) -> Message:
        raise ServiceError("No completion service is configured for this command")


@dataclass
class OpenConversation:
    store: ConversationStore
    name: str | None
    manager: ContextWindowManager
    created: bool

    @property
    def record(self) -> ConversationRecord:
        return self.manager.record

    def save(self) -> None:
        if self.name is None:
            logger.debug("Ephemeral conversation, nothing to save")
            return
        self.store.save(self.name, self.record)


def needs_service(app: AppConfig) -> bool:
    if app.repl:
        return True
    if app.list_conversations or app.show_context or app.show_history:
        return False
    if app.trim_context is not None and not app.prompt and not app.editor:
        return False
    return True


def setup_runtime(app: AppConfig, env: RuntimeEnv) -> tuple[ConversationStore, list[str]]:
    config_dir = ensure_config_dir(resolve_config_base(app, env))
    consumers = app.log_consumers if app.log_consumers is not None else default_consumers()
    log_descriptions = setup_logging(level=app.log_level, consumers=consumers, log_dir=config_dir)
    logger.debug(f"Config directory: {config_dir}; logging: {', '.join(log_descriptions)}")
    return ConversationStore(config_dir), log_descriptions


def build_service(model: str, env: RuntimeEnv, *, required: bool) -> CompletionService:
    if not required:
        return OfflineService()
    model_id = resolve(model)
    api_key = env.api_key_for(model_id.provider)
    if not api_key:
        raise ConfigurationError(f"{env.env_var_for(model_id.provider)} environment variable is required.")
    return create_provider(model_id.provider, api_key)


def open_conversation(
    app: AppConfig,
    env: RuntimeEnv,
    store: ConversationStore,
    *,
    cwd: Path,
    choose_model_fn: Callable[[], str] = choose_model,
) -> OpenConversation:
    includes = app.includes if app.includes is not None else DEFAULT_INCLUDES

    if app.force:
        name = None
        record = new_record(app.model or DEFAULT_MODEL, includes=includes)
        created = True
    else:
        name = conversation_name(app.conversation, cwd)
        chooser = (lambda: app.model) if app.model else choose_model_fn
        if name is None:
            record = new_record(chooser(), includes=includes)
            created = True
        else:
            record, created = store.load_or_create(name, chooser, includes=includes)

    service = build_service(record.model, env, required=needs_service(app))
    manager = ContextWindowManager(record, service)
    if app.includes is not None:
        manager.set_includes(app.includes)

    logger.info(
        f"Conversation {name or '(ephemeral)'}: model={record.model}, created={created}, "
        f"history={len(record.history)}, context={len(record.context)}"
    )
    return OpenConversation(store=store, name=name, manager=manager, created=created)
