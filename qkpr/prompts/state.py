from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .choices import ChoiceList


class PromptStatus(str, Enum):
    INITIALIZING = "initializing"
    SEARCHING = "searching"
    DISPLAYING = "displaying"
    ANSWERED = "answered"


@dataclass(frozen=True)
class RenderState:
    """Everything the renderer looks at, captured at one instant."""

    query: str
    choices: ChoiceList
    selected: int
    status: PromptStatus
    searched_once: bool = False
    error: Optional[str] = None
    answer_label: Optional[str] = None
