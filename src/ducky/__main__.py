import argparse
import asyncio
import sys
from collections.abc import Callable
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

from ducky.app_config import AppConfig, RuntimeEnv, load_json_config, parse_app_config, resolve_runtime_env
from ducky.bootstrap import open_conversation, setup_runtime
from ducky.conversation.models import Role
from ducky.errors import DuckyError
from ducky.prompting import choose_model, read_prompt
from ducky.rendering import ReplyRenderer
from ducky.repl import run_repl
from ducky.services.session_controller import SessionController


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ducky", description="Persistent conversations with a chat model")
    parser.add_argument("prompt", nargs="*", help="Prompt text (read from stdin when omitted)")
    parser.add_argument(
        "-c", "--conversation",
        help="Conversation name; ':name' is scoped to the current git project",
    )
    parser.add_argument("-r", "--repl", action="store_true", help="Start an interactive session")
    parser.add_argument(
        "-f", "--force",
        action="store_true",
        help="Start a throwaway conversation with the default model",
    )
    parser.add_argument("-e", "--editor", action="store_true", help="Compose the prompt in $EDITOR")
    parser.add_argument("-k", "--keep", action="store_true", help="Keep the prompt in the conversation context")
    parser.add_argument(
        "-x", "--extend",
        action="store_true",
        help="Widen the replayed window by one turn (consecutive uses accumulate)",
    )
    parser.add_argument("-s", "--system", action="store_true", help="Send the prompt as a system message")
    parser.add_argument("-m", "--model", help="Model for a new conversation")
    parser.add_argument("--includes", type=int, help="Number of prior turns replayed on each send")
    parser.add_argument(
        "--trim-context",
        type=int,
        metavar="N",
        help="Keep only the last N user turns (and system messages) in context",
    )
    parser.add_argument("--show-context", action="store_true", help="Print the saved context and exit")
    parser.add_argument("--show-history", action="store_true", help="Print the saved history and exit")
    parser.add_argument("--list", action="store_true", help="List saved conversations and exit")
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)")
    return parser


async def run(
    app: AppConfig,
    env: RuntimeEnv,
    *,
    cwd: Path,
    input_fn: Callable[[str], str] = input,
    renderer: ReplyRenderer | None = None,
) -> int:
    store, _ = setup_runtime(app, env)
    renderer = renderer or ReplyRenderer(theme=env.theme or app.theme)
    controller = SessionController(line_prefix="")

    if app.list_conversations:
        for name in store.list_conversations():
            renderer.info(name)
        return 0

    conversation = open_conversation(
        app,
        env,
        store,
        cwd=cwd,
        choose_model_fn=lambda: choose_model(input_fn),
    )
    manager = conversation.manager
    record = conversation.record
    changed = app.includes is not None

    if app.trim_context is not None:
        manager.trim_context(app.trim_context)
        changed = True

    if app.show_context or app.show_history:
        for line in controller.format_summary_lines(conversation.name, record):
            renderer.info(line)
        if app.show_context:
            renderer.info("Context:")
            for line in controller.format_message_lines(record.context):
                renderer.info(line)
        if app.show_history:
            renderer.info("History:")
            for line in controller.format_message_lines(record.history):
                renderer.info(line)
        if changed:
            conversation.save()
        return 0

    if app.repl:
        if not conversation.created:
            for line in controller.format_summary_lines(conversation.name, record):
                renderer.info(line)
        renderer.info("Type 'quit' to end the session, '/help' for commands.")
        try:
            turns = await run_repl(manager, renderer=renderer, controller=controller, input_fn=input_fn)
            logger.info(f"Interactive session finished after {turns} turn(s)")
        finally:
            conversation.save()
        return 0

    if app.trim_context is not None and not app.prompt and not app.editor:
        conversation.save()
        return 0

    prompt = read_prompt(app.prompt, use_editor=app.editor, editor=env.editor, input_fn=input_fn)
    role = Role.SYSTEM if app.as_system else Role.USER
    reply = await manager.send(prompt, role, keep=app.keep, extend_session=app.extend_session)
    renderer.render(reply.content)
    conversation.save()
    return 0


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        app = parse_app_config(load_json_config(), args)
        env = resolve_runtime_env()
        return asyncio.run(run(app, env, cwd=Path.cwd()))
    except DuckyError as ex:
        logger.error(str(ex))
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
