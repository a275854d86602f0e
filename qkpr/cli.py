from __future__ import annotations

import logging
import time
from typing import Callable, Optional

import typer
from InquirerPy import inquirer
from InquirerPy.separator import Separator
from rich.logging import RichHandler
from rich.prompt import Confirm

from . import __version__
from .branches import prompt_target_branch
from .config import LANGUAGES, ConfigError, QkprConfig, update_config
from .generator import COMMON_MODELS, NoChangesError, available_models, generate_branch_name, generate_commit_message
from .pins import PinStore
from .pr import copy_to_clipboard, create_merge_branch, create_pull_request
from .prompts import AutocompletePinPrompt
from .providers.base import ProviderConfigError, ProviderError
from .ui import banner, console, error, missing_key_panel, pr_info_panel, print_block, status_panel, success, tip, warn
from .utils.git import (
    GitError,
    create_branch,
    get_all_branches,
    get_git_info,
    has_staged_changes,
    is_branch_pushed,
    push_branch,
    try_open_repo,
)
from .utils.git import commit as git_commit

logger = logging.getLogger(__name__)

# Disable Typer rich help formatting to keep help output plain
app = typer.Typer(
    add_completion=False,
    help="Git workflow assistant: PRs with pinned branch search, AI commit messages and branch names.",
    rich_markup_mode=None,
)

MAIN_MENU = [
    {"name": "🔧  Create Pull Request", "value": "pr"},
    {"name": "🤖  Generate Commit Message", "value": "commit"},
    {"name": "🌿  Generate Branch Name", "value": "branch"},
    {"name": "⚙️   Configure API Key", "value": "config"},
    {"name": "🔧  Configure Model", "value": "config-model"},
    Separator(),
    {"name": "❌  Exit", "value": "exit"},
]


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=verbose)],
        force=True,
    )
    # quiet chatty libraries
    for name in ("openai", "httpx", "httpcore", "git"):
        logging.getLogger(name).setLevel(logging.WARNING)


def _select_menu(message: str, choices, default=None):
    """InquirerPy select; Ctrl+C cancels and yields ``None``."""
    try:
        return inquirer.select(
            message=message,
            choices=choices,
            default=default,
            keybindings={"abort": [{"key": "c-c"}]},
        ).execute()
    except KeyboardInterrupt:
        return None


def _guarded(action: Callable[[], bool]) -> int:
    """Run one workflow and return its exit code.

    Ctrl+C inside any prompt only cancels that workflow. A missing API key
    exits with 2, every other failure with 1.
    """
    try:
        return 0 if action() else 1
    except (KeyboardInterrupt, EOFError):
        console.print()
        warn("Cancelled.")
        return 1
    except ProviderConfigError as e:
        error(str(e))
        missing_key_panel()
        return 2
    except ConfigError as e:
        error(str(e))
        return 1


def _exit_with(code: int) -> None:
    raise typer.Exit(code=code)


# ---------------------------------------------------------------------------
# workflows
# ---------------------------------------------------------------------------


def run_pr() -> bool:
    banner("🔧  Quick PR Creator", "Interactive PR Creation Tool", __version__)
    repo = try_open_repo()
    info = get_git_info(repo)
    if repo is None or not info.is_git_repo:
        error("Not a Git repository")
        console.print("Please run this command in a Git repository.\n", style="dim")
        return False

    console.print("📍  Current Repository Information:", style="cyan")
    console.print(f"  Branch: {info.current_branch}", style="dim")
    console.print(f"  Remote: {info.remote_url}\n", style="dim")

    if not is_branch_pushed(repo, info.current_branch):
        warn(f"Current branch '{info.current_branch}' is not pushed to remote.")
        if not Confirm.ask(f"Branch '{info.current_branch}' is not pushed to remote. Push now?", default=True):
            warn("PR creation skipped because branch is not pushed to remote.")
            console.print("Please push the branch manually and try again.\n", style="dim")
            return False
        try:
            with console.status(f"Pushing '{info.current_branch}'…", spinner="dots"):
                push_branch(repo, info.current_branch)
        except GitError as e:
            error(str(e))
            error("Cannot create PR without pushing branch to remote.")
            return False
        success(f"Pushed '{info.current_branch}' to origin")

    branches = get_all_branches(repo)
    if not branches:
        warn("No branches found.")
        return False

    pins = PinStore.for_repo(repo)
    target = prompt_target_branch(repo, branches, info.current_branch, pins)
    if target is None:
        return False

    pr_info = create_pull_request(repo, info.current_branch, target, info.remote_url)
    if pr_info is None:
        error(f"Failed to create PR information: cannot parse remote URL '{info.remote_url}'")
        return False

    pr_info_panel(pr_info.pr_message, pr_info.pr_url)
    if copy_to_clipboard(pr_info.pr_message):
        success("PR description copied to clipboard")
    else:
        warn("Could not copy to clipboard")

    console.print("\n🌐  Opening PR page in browser...", style="cyan")
    if typer.launch(pr_info.pr_url) == 0:
        success("Browser opened successfully")
    else:
        warn("Could not open browser automatically")
        console.print(f"Please open manually: {pr_info.pr_url}", style="dim")

    console.print(f"\n💡  Suggested merge branch name: {pr_info.merge_branch_name}", style="yellow")
    if Confirm.ask("Do you want to create a merge branch for conflict resolution?", default=True):
        try:
            console.print(f"\n🔀  Switching to target branch: {target}", style="cyan")
            console.print(f"🌿  Creating merge branch: {pr_info.merge_branch_name}", style="cyan")
            create_merge_branch(repo, target, pr_info.merge_branch_name)
        except GitError as e:
            error(f"Failed to create merge branch: {e}")
            return False
        success(f"Successfully created merge branch: {pr_info.merge_branch_name}\n")

    success("PR creation process completed!\n")
    return True


def _draft(kind: str, generate: Callable) -> Optional[str]:
    repo = try_open_repo()
    if repo is None:
        error("Not a Git repository")
        return None
    if not has_staged_changes(repo):
        warn("No staged changes found.")
        tip("Stage files first with 'git add'.")
        return None
    cfg = QkprConfig.load()
    started = time.monotonic()
    try:
        with console.status(f"Generating {kind} with Gemini AI ({cfg.model()})…", spinner="dots"):
            text = generate(repo, cfg)
    except NoChangesError:
        warn("No staged changes found.")
        return None
    except ProviderError as e:
        error(str(e))
        return None
    success(f"AI generation completed in {time.monotonic() - started:.2f}s")
    return text or None


def run_commit() -> bool:
    message = _draft("commit message", generate_commit_message)
    if not message:
        return False
    print_block("✅  Generated commit message", message, border_style="green")
    if not Confirm.ask("Commit with this message?", default=True):
        if copy_to_clipboard(message):
            tip("Commit skipped; the message is on your clipboard.")
        else:
            tip("Commit skipped.")
        return True
    repo = try_open_repo()
    try:
        git_commit(repo, message)
    except GitError as e:
        error(str(e))
        return False
    success("Committed")
    return True


def run_branch() -> bool:
    name = _draft("branch name", generate_branch_name)
    if not name:
        return False
    console.print("💡  Suggested branch name:\n", style="yellow")
    console.print(f"   {name}\n", style="green")
    if not Confirm.ask(f"Create and switch to '{name}'?", default=False):
        return True
    try:
        create_branch(try_open_repo(), name)
    except GitError as e:
        error(str(e))
        return False
    success(f"Switched to new branch '{name}'")
    return True


def run_config(language: Optional[str] = None) -> bool:
    if language:
        lang = language.lower()
        if lang not in LANGUAGES:
            error(f"Unsupported language '{language}' (choose from: {', '.join(LANGUAGES)})")
            return False
        update_config(prompt_language=lang)
        success(f"Prompt language set to {lang}")
        return True

    banner("⚙️   Gemini API Key")
    tip("Get a key at https://aistudio.google.com/apikey")
    key = typer.prompt("Enter your Gemini API key", hide_input=True).strip()
    if not key:
        warn("API key unchanged.")
        return False
    update_config(gemini_api_key=key)
    success("API key saved")
    return True


def _model_source(models):
    def source(query: str, context=None):
        needle = (query or "").lower()
        return [m for m in models if needle in m.lower()]

    return source


def _validate_model(text: str, context=None):
    return True if text.strip() else "Model name cannot be empty"


def run_config_model() -> bool:
    cfg = QkprConfig.load()
    try:
        with console.status("Fetching available models…", spinner="dots"):
            models = available_models(cfg)
    except ProviderError as e:
        warn(f"{e}\nUsing the built-in model list.")
        models = list(COMMON_MODELS)

    console.print(f"Current model: {cfg.model()}", style="dim")
    prompt = AutocompletePinPrompt(
        message="Select a Gemini model (type any name):",
        source=_model_source(models),
        default=cfg.model(),
        suggest_only=True,
        validate=_validate_model,
        filter=str.strip,
        page_size=15,
    )
    model = prompt.execute()
    update_config(gemini_model=model)
    success(f"Model set to {model}")
    return True


def _show_menu() -> None:
    banner(
        "🚀  Quick PR Tool",
        "Your All-in-One Git Workflow Assistant",
        __version__,
    )
    actions = {
        "pr": run_pr,
        "commit": run_commit,
        "branch": run_branch,
        "config": run_config,
        "config-model": run_config_model,
    }
    while True:
        choice = _select_menu("What would you like to do?", MAIN_MENU)
        if choice in (None, "exit"):
            console.print("\n👋  Goodbye!\n", style="dim")
            return
        _guarded(actions[choice])


# ---------------------------------------------------------------------------
# commands
# ---------------------------------------------------------------------------


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"qkpr v{__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def _default(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logs"),
    version: bool = typer.Option(
        False, "--version", "-v", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
):
    """Show the interactive menu when no command is given."""
    _setup_logging(verbose)
    if ctx.invoked_subcommand is None:
        _show_menu()


@app.command()
def pr():
    """Create a Pull Request with interactive branch selection."""
    _exit_with(_guarded(run_pr))


@app.command()
def commit():
    """Generate a commit message for the staged changes using AI."""
    _exit_with(_guarded(run_commit))


@app.command()
def branch():
    """Generate a branch name for the staged changes using AI."""
    _exit_with(_guarded(run_branch))


@app.command()
def config(
    language: Optional[str] = typer.Option(None, "--language", help="Prompt language: en|zh"),
    show: bool = typer.Option(False, "--show", help="Show the effective configuration"),
):
    """Configure the Gemini API key (or the prompt language)."""
    if show:
        status_panel(QkprConfig.load())
        return
    _exit_with(_guarded(lambda: run_config(language)))


@app.command("config-model")
def config_model():
    """Choose the Gemini model."""
    _exit_with(_guarded(run_config_model))


@app.command()
def pins(clear: bool = typer.Option(False, "--clear", help="Remove every pin of this repository")):
    """List the pinned branches of the current repository."""
    store = PinStore.for_repo(try_open_repo())
    if clear:
        store.clear()
        success("Cleared pinned branches")
        return
    pinned = store.get()
    if not pinned:
        tip("No pinned branches yet. Press Ctrl+P in the branch picker to pin one.")
        return
    for name in pinned:
        console.print(f"📌 {name}")


def main() -> None:
    app()
