import argparse
import logging
import sys
from typing import Callable

from rich.console import Console

from tiny_agent.core import CancellationToken, TinyAgent
from tiny_agent.errors import ModelLoadError, ProfileError
from tiny_agent.gguf_handler import resolve_model_path
from tiny_agent.profile import load_agent_profile
from tiny_agent.utils import prompts
from tiny_agent.utils.config import Config, is_llama_cpp_available
from tiny_agent.utils.console import (
    make_console,
    print_assistant_message,
    print_system_messages,
    print_user_prompt,
    render_stream,
)
from tiny_agent.utils.logging import setup_logging

console = Console()
logger = logging.getLogger(__name__)


def parse_arguments(config_obj: Config, argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Chat with a local GGUF model through a layered system prompt. Submit a blank line to exit.")
    parser.add_argument("-m", "--model-path", type=str, default=None, help=f"Path to a GGUF model file (Default: {config_obj.MODEL_PATH or 'None'})")
    parser.add_argument("--repo-id", type=str, default=None, help="Hugging Face repo to download the GGUF from when no model path is given")
    parser.add_argument("--filename", type=str, default=None, help="GGUF filename inside --repo-id")
    parser.add_argument("-p", "--profile", type=str, default=None, help=f"Agent profile YAML (Default: {config_obj.AGENT_PROFILE_PATH})")
    parser.add_argument("--name", type=str, default=None, help="Agent name (overrides the profile)")
    parser.add_argument("--role", type=str, default=None, help="Agent role (overrides the profile)")
    parser.add_argument("--context-size", type=int, default=None, help=f"Context size in tokens (Default: {config_obj.CONTEXT_SIZE})")
    parser.add_argument("--gpu-layers", type=int, default=None, help=f"Layers to offload to GPU, -1 for all (Default: {config_obj.GPU_LAYERS})")
    parser.add_argument("--max-tokens", type=int, default=None, help=f"Maximum tokens per reply (Default: {config_obj.MAX_TOKENS})")
    parser.add_argument("--allow-comments", action="store_true", help="Do not ask the model to suppress commentary around the expected output")
    parser.add_argument("--first-message", type=str, default=prompts.DEFAULT_FIRST_MESSAGE, help="Message sent before reading input; empty string to skip")
    parser.add_argument("--show-prompt", action="store_true", help="Print the assembled system prompt before chatting")
    parser.add_argument("--no-stream", action="store_true", default=False, help="Disable streaming output")
    parser.add_argument("--plain", action="store_true", help="Use plain text output")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging output.")
    return parser.parse_args(argv)


def apply_arguments(config_obj: Config, args: argparse.Namespace) -> None:
    """Let command-line flags override env/.env settings."""
    if args.model_path is not None:
        config_obj.MODEL_PATH = args.model_path
    if args.repo_id is not None:
        config_obj.MODEL_REPO_ID = args.repo_id
    if args.filename is not None:
        config_obj.MODEL_FILENAME = args.filename
    if args.profile is not None:
        config_obj.AGENT_PROFILE_PATH = args.profile
    if args.context_size is not None:
        config_obj.CONTEXT_SIZE = args.context_size
    if args.gpu_layers is not None:
        config_obj.GPU_LAYERS = args.gpu_layers
    if args.max_tokens is not None:
        config_obj.MAX_TOKENS = args.max_tokens
    if args.allow_comments:
        config_obj.SUPPRESS_AI_COMMENTS = False
    config_obj.VERBOSE = config_obj.VERBOSE or args.verbose
    config_obj.PLAIN_OUTPUT = config_obj.PLAIN_OUTPUT or args.plain
    config_obj.NO_STREAM = config_obj.NO_STREAM or args.no_stream


def build_agent(config_obj: Config, args: argparse.Namespace) -> TinyAgent:
    profile = load_agent_profile(config_obj.AGENT_PROFILE_PATH)
    if args.name:
        profile.name = args.name
    if args.role:
        profile.role = args.role
    return TinyAgent.from_profile(profile)


def _read_line(out: Console) -> str:
    print_user_prompt(out)
    return input()


def run_repl(
    agent: TinyAgent,
    out: Console,
    stream: bool = True,
    plain: bool = False,
    first_message: str = prompts.DEFAULT_FIRST_MESSAGE,
    read_line: Callable[[Console], str] = _read_line,
) -> int:
    """Chat until a blank line, EOF or Ctrl-C at the prompt.

    Returns:
        The number of turns sent to the agent.
    """
    turns = 0
    pending = first_message
    while True:
        if pending:
            input_text, pending = pending, ""
        else:
            try:
                input_text = read_line(out)
            except (EOFError, KeyboardInterrupt):
                out.print()
                break
        if not input_text or not input_text.strip():
            break

        turns += 1
        if stream:
            token = CancellationToken()
            chunks = agent.chat_stream(input_text, token)
            try:
                render_stream(out, chunks, plain=plain)
            except KeyboardInterrupt:
                token.cancel()
                out.print("\n[bold yellow]Interrupted![/bold yellow]")
            finally:
                chunks.close()
        else:
            reply = agent.chat(input_text)
            print_assistant_message(out, reply, title=agent.agent_name, plain=plain)
    return turns


def main(argv: list[str] | None = None):
    try:
        config_obj = Config()
    except Exception as e:
        # Catch potential Pydantic validation errors or file issues during Config init
        console.print(f"[bold red]Error initializing configuration:[/bold red] {e}")
        sys.exit(1)

    args = parse_arguments(config_obj, argv)
    apply_arguments(config_obj, args)
    setup_logging(verbose=config_obj.VERBOSE, debug=args.debug)
    logger.debug(f"Agent profile: {config_obj.AGENT_PROFILE_PATH}, streaming: {not config_obj.NO_STREAM}")
    out = make_console(plain=config_obj.PLAIN_OUTPUT)

    try:
        agent = build_agent(config_obj, args)
    except ProfileError as e:
        console.print(f"[bold red]Error loading agent profile:[/bold red] {e}")
        sys.exit(1)

    if args.show_prompt:
        print_system_messages(out, agent.system_messages(config_obj.SUPPRESS_AI_COMMENTS))

    try:
        model_path = resolve_model_path(config_obj)
        if model_path and not is_llama_cpp_available():
            console.print("[bold red]Error:[/bold red] `llama-cpp-python` is required to run GGUF models.")
            sys.exit(1)
        out.print("Please wait for the moment. I'm getting ready now...")
        agent.configure(config_obj.to_generation_config(model_path))
    except ModelLoadError as e:
        console.print(f"[bold red]Error loading model:[/bold red] {e}")
        console.print("Ensure the model path is correct and `llama-cpp-python` is installed with appropriate hardware acceleration.")
        sys.exit(1)

    if agent.session is None:
        console.print("[yellow]Warning:[/yellow] No model configured. Set --model-path or TINY_AGENT_MODEL_PATH.")

    try:
        run_repl(
            agent,
            out,
            stream=not config_obj.NO_STREAM,
            plain=config_obj.PLAIN_OUTPUT,
            first_message=args.first_message,
        )
    finally:
        agent.close()
