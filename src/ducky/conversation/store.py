from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from loguru import logger

from ducky.conversation import codec
from ducky.conversation.models import DEFAULT_INCLUDES, ConversationRecord
from ducky.engines import resolve
from ducky.errors import ConfigurationError, DocumentNotFoundError

APP_DIR_NAME = "ducky"


def ensure_config_dir(base: Path) -> Path:
    """Return ``<base>/ducky``, creating it when missing."""
    config_dir = Path(base) / APP_DIR_NAME
    try:
        config_dir.mkdir(parents=True, exist_ok=True)
    except OSError as ex:
        raise ConfigurationError(f"Unable to create config directory {config_dir}: {ex}") from ex
    if not config_dir.is_dir():
        raise ConfigurationError(f"Config path is not a directory: {config_dir}")
    return config_dir


def new_record(model: str, *, includes: int = DEFAULT_INCLUDES) -> ConversationRecord:
    resolve(model)
    return ConversationRecord(model=model, includes=includes)


class ConversationStore:
    """One JSON document per named conversation inside the config directory."""

    def __init__(self, config_dir: Path):
        self._config_dir = Path(config_dir)

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    def path_for(self, name: str) -> Path:
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise ConfigurationError(f"Invalid conversation name: {name!r}")
        return self._config_dir / f"{name}.json"

    def load(self, name: str) -> ConversationRecord:
        return codec.load(self.path_for(name))

    def save(self, name: str, record: ConversationRecord) -> None:
        codec.save(record, self.path_for(name))
        logger.info(f"Saved conversation {name!r} ({len(record.history)} messages)")

    def load_or_create(
        self,
        name: str,
        choose_model: Callable[[], str],
        *,
        includes: int = DEFAULT_INCLUDES,
    ) -> tuple[ConversationRecord, bool]:
        """Load ``name`` or start a new record. Returns (record, created)."""
        try:
            return self.load(name), False
        except DocumentNotFoundError:
            logger.info(f"No saved conversation {name!r}; starting a new one")
        return new_record(choose_model(), includes=includes), True

    def list_conversations(self) -> list[str]:
        return sorted(p.stem for p in self._config_dir.glob("*.json"))
