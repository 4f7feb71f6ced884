from __future__ import annotations


class DuckyError(Exception):
    """Base class for every error surfaced to the command line."""


class ConfigurationError(DuckyError):
    pass


class UnknownModelError(DuckyError):
    def __init__(self, name: str):
        super().__init__(f"Invalid model: {name!r}")
        self.name = name


class StorageError(DuckyError):
    pass


class DocumentNotFoundError(StorageError):
    def __init__(self, path: str):
        super().__init__(f"No conversation document at {path}")
        self.path = path


class CorruptDocumentError(StorageError):
    def __init__(self, path: str, reason: str):
        super().__init__(f"Conversation document {path} could not be decoded: {reason}")
        self.path = path
        self.reason = reason


class ServiceError(DuckyError):
    """The completion service call failed. Never retried."""


class EmptyInputError(DuckyError):
    def __init__(self) -> None:
        super().__init__("Empty prompt, aborting")
