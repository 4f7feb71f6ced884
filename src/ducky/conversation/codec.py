from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from loguru import logger

from ducky.conversation.models import DEFAULT_INCLUDES, ConversationRecord, Message
from ducky.engines import resolve
from ducky.errors import CorruptDocumentError, DocumentNotFoundError, StorageError

SCHEMA_VERSION = 2


def encode(record: ConversationRecord) -> dict:
    return {
        "version": SCHEMA_VERSION,
        "model": record.model,
        "history": [m.to_dict() for m in record.history],
        "context": [m.to_dict() for m in record.context],
        "includes": record.includes,
        "session_len": record.session_len,
    }


def decode(data: object) -> ConversationRecord:
    """Build a record from a parsed document, default-filling legacy fields.

    Version 1 documents carry only ``model`` and ``history``.
    """
    if not isinstance(data, dict):
        raise ValueError("document root is not an object")

    version = data.get("version", 1)
    if not isinstance(version, int) or version < 1 or version > SCHEMA_VERSION:
        raise ValueError(f"unsupported document version {version!r}")

    model = data.get("model")
    if not isinstance(model, str):
        raise ValueError("'model' must be a string")

    includes = data.get("includes", DEFAULT_INCLUDES)
    session_len = data.get("session_len", 0)
    for key, value in (("includes", includes), ("session_len", session_len)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{key!r} must be an integer")

    return ConversationRecord(
        model=model,
        history=_decode_messages(data.get("history", []), "history"),
        context=_decode_messages(data.get("context", []), "context"),
        includes=includes,
        session_len=session_len,
    )


def _decode_messages(raw: object, key: str) -> list[Message]:
    if not isinstance(raw, list):
        raise ValueError(f"{key!r} must be a list")
    messages: list[Message] = []
    for item in raw:
        if not isinstance(item, dict) or not isinstance(item.get("content"), str):
            raise ValueError(f"malformed message in {key!r}")
        messages.append(Message.from_dict(item))
    return messages


def load(path: Path) -> ConversationRecord:
    try:
        raw = Path(path).read_bytes()
    except FileNotFoundError:
        raise DocumentNotFoundError(str(path)) from None
    except OSError as ex:
        raise StorageError(f"Unable to read {path}: {ex}") from ex

    try:
        record = decode(json.loads(raw.decode("utf-8")))
    except (ValueError, KeyError, TypeError) as ex:
        # JSONDecodeError, UnicodeDecodeError and invalid Role values are ValueErrors too.
        raise CorruptDocumentError(str(path), str(ex)) from ex

    resolve(record.model)
    logger.debug(
        f"Loaded conversation from {path}: model={record.model}, "
        f"history={len(record.history)}, context={len(record.context)}"
    )
    return record


def save(record: ConversationRecord, path: Path) -> None:
    """Replace the document at ``path`` with the full record."""
    path = Path(path)
    try:
        contents = json.dumps(encode(record), ensure_ascii=False).encode("utf-8")
    except UnicodeEncodeError as ex:
        raise StorageError(f"Unable to encode conversation for {path}: {ex}") from ex

    tmp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "wb",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            tmp_name = f.name
            f.write(contents)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as ex:
        raise StorageError(f"Unable to write {path}: {ex}") from ex
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)

    logger.debug(f"Saved conversation to {path} (history={len(record.history)}, context={len(record.context)})")
