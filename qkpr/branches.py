from __future__ import annotations

from typing import Any, Callable, List, Optional, Sequence

from git import Repo  # type: ignore

from .pins import PinStore
from .prompts import AutocompletePinPrompt, Choice, Separator
from .ui import console, success, warn
from .utils.git import BranchInfo, get_branches_with_info

CANCEL = "__CANCEL__"
PIN_MARK = "📌"
MAX_BRANCHES = 100
NAME_WIDTH = 45


def branch_choice(branch: BranchInfo, pinned: bool) -> Choice:
    mark = PIN_MARK if pinned else "  "
    hint = f"({branch.last_commit_time_formatted})" if branch.last_commit_time_formatted else None
    return Choice(
        value=branch.name,
        name=f"{mark} {branch.name.ljust(NAME_WIDTH)}",
        short=branch.name,
        hint=hint,
    )


def cancel_entries(label: str = "[Cancel PR creation]") -> List[Any]:
    return [Separator(" "), Choice(value=CANCEL, name=f"  {label}", short="Cancel")]


def build_branch_source(
    branches: Sequence[BranchInfo],
    get_pinned: Callable[[], List[str]],
    *,
    filter_pinned: bool = False,
    max_branches: int = MAX_BRANCHES,
) -> Callable[[str, Any], List[Any]]:
    """Return a candidate source listing ``branches`` for the pin prompt.

    The order is fixed from the pins known now, so toggling a pin updates the
    marker without making the row jump. Pin markers are read on every call.
    """
    order = list(get_pinned())
    top = [b for b in branches if b.name in order]
    top.sort(key=lambda b: order.index(b.name))
    rest = sorted((b for b in branches if b.name not in order), key=lambda b: b.name)
    listed = ([] if filter_pinned else top) + rest[:max_branches]

    def source(query: Optional[str], context: Any = None) -> List[Any]:
        pinned_now = set(get_pinned())
        needle = (query or "").lower()
        if needle.strip():
            matched = [b for b in branches if needle in b.name.lower()]
            return [branch_choice(b, b.name in pinned_now) for b in matched] + cancel_entries()

        entries: List[Any] = [branch_choice(b, b.name in pinned_now) for b in listed]
        if not filter_pinned:
            entries.extend(cancel_entries())
        return entries

    return source


def prompt_branch_selection(
    branches: Sequence[BranchInfo],
    message: str,
    pins: PinStore,
    *,
    title: Optional[str] = None,
    filter_pinned: bool = False,
    page_size: int = 20,
) -> Optional[str]:
    if title:
        console.print(f"\n{title}", style="cyan")
    if not branches:
        warn("No branches found")
        return None

    def toggle(value: str) -> None:
        if value != CANCEL:
            pins.toggle(value)

    prompt = AutocompletePinPrompt(
        message=message,
        source=build_branch_source(branches, pins.get, filter_pinned=filter_pinned),
        page_size=page_size,
        on_pin=toggle,
    )
    return prompt.execute()


def prompt_target_branch(
    repo: Repo,
    branches: Sequence[str],
    current_branch: str,
    pins: PinStore,
) -> Optional[str]:
    """Ask for the branch a PR should target; ``None`` means cancelled."""
    console.print(f"Current branch: {current_branch}\n", style="dim")
    available = [b for b in branches if b != current_branch]
    infos = get_branches_with_info(repo, available)
    target = prompt_branch_selection(
        infos,
        "Select target branch (type to search):",
        pins,
        title="🎯  Target Branch Selection",
    )
    if target == CANCEL:
        warn("\n🚫 PR creation cancelled.")
        return None
    if not target:
        warn('No branch selected. Using "main" as default.')
        return "main"
    success(f"Selected target branch: {target}\n")
    return target
