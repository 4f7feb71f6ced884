from __future__ import annotations

import argparse
import json
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from ducky.errors import ConfigurationError


@dataclass
class RuntimeEnv:
    openai_api_key: str
    anthropic_api_key: str
    editor: str
    theme: str | None
    config_home: str | None

    def api_key_for(self, provider_name: str) -> str:
        if provider_name == "anthropic":
            return self.anthropic_api_key
        return self.openai_api_key

    @staticmethod
    def env_var_for(provider_name: str) -> str:
        if provider_name == "anthropic":
            return "ANTHROPIC_API_KEY"
        return "DUCKY_GPT_KEY"


@dataclass
class AppConfig:
    conversation: str | None
    model: str | None
    includes: int | None
    repl: bool
    force: bool
    editor: bool
    keep: bool
    extend_session: bool
    as_system: bool
    trim_context: int | None
    show_context: bool
    show_history: bool
    list_conversations: bool
    prompt: list[str]
    config_dir: str | None
    theme: str | None
    log_level: str
    log_consumers: list | None


def load_json_config(path: Path | None = None) -> dict:
    config_path = path or Path.cwd() / "config.json"
    if not config_path.exists():
        return {}
    try:
        with open(config_path) as f:
            config = json.load(f)
    except (OSError, ValueError) as ex:
        raise ConfigurationError(f"Unable to read {config_path}: {ex}") from ex
    if not isinstance(config, dict):
        raise ConfigurationError(f"{config_path} must contain a JSON object")
    return config


def _optional_int(value: object, key: str) -> int | None:
    if value is None:
        return None
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{key} must be an integer, got {value!r}") from None
    if parsed < 0:
        raise ConfigurationError(f"{key} must be >= 0, got {parsed}")
    return parsed


def parse_app_config(config: dict, args: argparse.Namespace) -> AppConfig:
    """Merge config.json values with command-line flags. Flags win."""
    return AppConfig(
        conversation=args.conversation,
        model=args.model or config.get("Model"),
        includes=_optional_int(args.includes if args.includes is not None else config.get("Includes"), "Includes"),
        repl=args.repl,
        force=args.force,
        editor=args.editor,
        keep=args.keep,
        extend_session=args.extend,
        as_system=args.system,
        trim_context=_optional_int(args.trim_context, "--trim-context"),
        show_context=args.show_context,
        show_history=args.show_history,
        list_conversations=args.list,
        prompt=list(args.prompt),
        config_dir=config.get("ConfigDir"),
        theme=config.get("Theme"),
        log_level=args.log_level or config.get("LogLevel", "WARNING"),
        log_consumers=config.get("LogConsumers"),
    )


def resolve_runtime_env(environ: Mapping[str, str] | None = None) -> RuntimeEnv:
    env = os.environ if environ is None else environ
    return RuntimeEnv(
        openai_api_key=env.get("DUCKY_GPT_KEY") or env.get("OPENAI_API_KEY", ""),
        anthropic_api_key=env.get("ANTHROPIC_API_KEY", ""),
        editor=env.get("EDITOR") or "vi",
        theme=env.get("DUCKY_THEME"),
        config_home=env.get("XDG_CONFIG_HOME"),
    )


def resolve_config_base(app: AppConfig, env: RuntimeEnv) -> Path:
    if app.config_dir:
        return Path(app.config_dir).expanduser()
    if env.config_home:
        return Path(env.config_home).expanduser()
    return Path("~/.config").expanduser()
