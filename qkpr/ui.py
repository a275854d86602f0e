from __future__ import annotations

from typing import Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .config import QkprConfig


console = Console()


def banner(title: str, subtitle: Optional[str] = None, version: Optional[str] = None) -> None:
    body = Text(title, style="bold cyan", justify="center")
    if subtitle:
        body.append(f"\n\n{subtitle}", style="cyan")
    console.print(Panel(body, border_style="cyan", box=box.DOUBLE, padding=(1, 4)))
    if version:
        console.print(Text(f"Version: {version}", style="dim", justify="center"))


def tip(text: str) -> None:
    console.print(Text(f"💡  {text}", style="italic dim"))


def success(text: str) -> None:
    console.print(Text(f"✅  {text}", style="green"))


def warn(text: str) -> None:
    console.print(Text(f"⚠️  {text}", style="yellow"))


def error(text: str) -> None:
    console.print(Text(f"❌  {text}", style="red"))


def print_block(title: str, body: str, border_style: str = "cyan") -> None:
    # Avoid rendering an empty panel when nothing to show
    if not body:
        return
    console.print(Panel(Text(body), title=title, title_align="left", border_style=border_style, box=box.ROUNDED))


def pr_info_panel(pr_message: str, pr_url: str) -> None:
    print_block("📋  PR Description Generated", pr_message)
    console.print(Text("\n👉  PR URL:", style="cyan"))
    console.print(Text(pr_url, style="green"))


def missing_key_panel() -> None:
    body = (
        "• Save a key: 'qkpr config'\n"
        "• Or export QUICK_PR_GEMINI_API_KEY=... (GEMINI_API_KEY also works)\n"
        "• Get a key at https://aistudio.google.com/apikey"
    )
    console.print(Panel(Text(body), title="Gemini Setup", border_style="yellow", box=box.ROUNDED))


def status_panel(cfg: QkprConfig) -> None:
    table = Table.grid(padding=(0, 2))
    table.add_column(justify="left", style="bold cyan")
    table.add_column(justify="left")
    table.add_row("Model", cfg.model())
    table.add_row("API key", "set" if cfg.api_key() else "missing")
    table.add_row("Prompt language", cfg.language())
    console.print(Panel.fit(table, title="Status", border_style="blue", box=box.ROUNDED))
