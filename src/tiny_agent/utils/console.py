import sys
import time
from typing import Iterator

from rich.align import Align
from rich.console import Console
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule


def make_console(plain: bool = False) -> Console:
    return Console(force_terminal=not plain, no_color=plain, highlight=not plain)


def print_user_prompt(console: Console) -> None:
    console.print("\n[bold blue]User:[/bold blue] ", end="")


def print_assistant_message(console: Console, content: str, title: str = "Assistant", plain: bool = False):
    if plain:
        print(content)
        return
    if not content.strip():
        console.print("[bold red]Error:[/bold red] Empty response received.")
        return
    assistant_panel = Panel(
        Markdown(content.strip()),
        title=f"[bold green]{title}[/bold green]",
        border_style="green",
        padding=(1, 2),
    )
    console.print(Align(assistant_panel, align="left"))


def print_system_messages(console: Console, messages: list[str]):
    """Show the assembled system prompt, one section per block."""
    console.print(Rule("System prompt", style="dim blue"))
    for i, message in enumerate(messages, start=1):
        console.print(f"[dim]{i}.[/dim] {message}", markup=False, highlight=False)
    console.print(Rule(style="dim blue"))


def render_stream(console: Console, chunks: Iterator[str], plain: bool = False) -> str:
    """Print chunks as they arrive and return the full text."""
    total_response = ""
    if plain:
        for content in chunks:
            total_response += content
            print(content, end='')
            sys.stdout.flush()
        print()
        return total_response

    min_refresh_interval = 0.05  # 20fps max
    with Live(Markdown("▌"), console=console, auto_refresh=False, vertical_overflow="visible") as live:
        last_refresh_time = 0.0
        for content in chunks:
            total_response += content
            current_time = time.time()
            if current_time - last_refresh_time > min_refresh_interval:
                live.update(Markdown(total_response + "▌"), refresh=True)
                last_refresh_time = current_time
        live.update(Markdown(total_response), refresh=True)
    return total_response
