"""Turn a prompt state into prompt_toolkit formatted text.

Nothing here touches the terminal: :func:`render_frame` is a pure function of
its inputs so the prompt can be rendered (and tested) without an application.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from InquirerPy.separator import Separator
from prompt_toolkit.formatted_text import StyleAndTextTuples, fragment_list_to_text
from prompt_toolkit.styles import Style

from .choices import Choice, ChoiceList
from .state import PromptStatus, RenderState

Row = List[Tuple[str, str]]

MORE_CHOICES_HINT = "(Move up and down to reveal more choices)"

DEFAULT_STYLE = Style.from_dict(
    {
        "questionmark": "fg:ansigreen bold",
        "question": "bold",
        "answer": "fg:ansicyan",
        "hint": "fg:ansibrightblack",
        "pointer": "fg:ansicyan",
        "highlighted": "fg:ansicyan",
        "separator": "",
        "disabled": "fg:ansibrightblack",
        "meta": "fg:ansibrightblack",
        "searching": "fg:ansibrightblack",
        "empty": "fg:ansiyellow",
        "error": "fg:ansired",
    }
)


@dataclass(frozen=True)
class RenderOptions:
    message: str
    page_size: int = 10
    suggest_only: bool = False
    pinnable: bool = False
    search_text: str = "Searching..."
    empty_text: str = "No results..."
    pointer: str = "❯"


@dataclass(frozen=True)
class Frame:
    content: StyleAndTextTuples
    bottom: StyleAndTextTuples

    def to_text(self) -> str:
        top = fragment_list_to_text(self.content)
        bottom = fragment_list_to_text(self.bottom)
        return f"{top}\n{bottom}" if bottom else top


def key_hint(options: RenderOptions) -> str:
    parts = ["Use arrow keys or type to search"]
    if options.suggest_only:
        parts.append("tab to autocomplete")
    if options.pinnable:
        parts.append("Ctrl+P to Pin")
    return "(" + ", ".join(parts) + ")"


def _choice_rows(choice: Choice, is_pointed: bool, pointer: str) -> List[Row]:
    lines = choice.label.split("\n")
    rows: List[Row] = []
    for n, line in enumerate(lines):
        if n == 0 and is_pointed:
            row: Row = [("class:pointer", f"{pointer} "), ("class:highlighted", line)]
        elif is_pointed:
            row = [("", "  "), ("class:highlighted", line)]
        else:
            row = [("", "  "), ("", line)]
        rows.append(row)
    if choice.hint:
        rows[-1].append(("class:meta", f" {choice.hint}"))
    return rows


def list_rows(choices: ChoiceList, selected: int, pointer: str = "❯") -> Tuple[List[Row], int]:
    """Lay out every entry as rows; return them with the row of ``selected``."""
    rows: List[Row] = []
    active_row = 0
    position = 0
    for entry in choices:
        if isinstance(entry, Separator):
            rows.append([("class:separator", f"  {entry}")])
            continue
        if not entry.selectable:
            reason = entry.disabled if isinstance(entry.disabled, str) else "Disabled"
            rows.append([("class:disabled", f"  - {entry.label} ({reason})")])
            continue
        is_pointed = position == selected
        if is_pointed:
            active_row = len(rows)
        rows.extend(_choice_rows(entry, is_pointed, pointer))
        position += 1
    return rows, active_row


def paginate(rows: Sequence[Row], active: int, page_size: int) -> List[Row]:
    """Window ``rows`` around ``active`` so at most ``page_size`` are shown."""
    if page_size <= 0 or len(rows) <= page_size:
        return list(rows)
    top = active - page_size // 2
    top = max(0, min(top, len(rows) - page_size))
    window = list(rows[top : top + page_size])
    window.append([("class:hint", MORE_CHOICES_HINT)])
    return window


def _join(rows: Sequence[Row]) -> StyleAndTextTuples:
    out: StyleAndTextTuples = []
    for n, row in enumerate(rows):
        if n:
            out.append(("", "\n"))
        out.extend(row)
    return out


def render_frame(options: RenderOptions, state: RenderState) -> Frame:
    content: StyleAndTextTuples = [
        ("class:questionmark", "?"),
        ("", " "),
        ("class:question", options.message),
        ("", " "),
    ]

    if state.status is PromptStatus.ANSWERED:
        content.append(("class:answer", state.answer_label or ""))
        return Frame(content=content, bottom=[])

    content.append(("class:hint", key_hint(options) + " "))
    content.append(("", state.query))
    content.append(("[SetCursorPosition]", ""))

    rows: List[Row] = []
    if state.status in (PromptStatus.INITIALIZING, PromptStatus.SEARCHING):
        # nothing is painted until the first search has completed
        if state.searched_once:
            rows.append([("class:searching", f"  {options.search_text}")])
    elif state.choices.nb_choices:
        body, active = list_rows(state.choices, state.selected, options.pointer)
        rows.extend(paginate(body, active, options.page_size))
    else:
        rows.append([("class:empty", f"  {options.empty_text}")])

    if state.error:
        rows.append([("class:error", ">> "), ("", state.error)])

    return Frame(content=content, bottom=_join(rows))
