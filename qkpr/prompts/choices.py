from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, Optional, Tuple, Union

from InquirerPy.separator import Separator

from .exceptions import OutOfRangeSelection


@dataclass(frozen=True)
class Choice:
    """One entry of a choice list.

    ``value`` identifies the entry across refreshes, ``name`` is what the user
    sees. ``short`` replaces the name once the prompt is answered and ``hint``
    is rendered dimmed after the name.
    """

    value: Any
    name: Optional[str] = None
    short: Optional[str] = None
    hint: Optional[str] = None
    disabled: Union[bool, str] = False

    @property
    def label(self) -> str:
        return self.name if self.name is not None else str(self.value)

    @property
    def short_label(self) -> str:
        return self.short if self.short is not None else self.label

    @property
    def selectable(self) -> bool:
        return not self.disabled


Entry = Union[Choice, Separator]


def _normalize_choice(raw: Any) -> Entry:
    if isinstance(raw, (Choice, Separator)):
        return raw
    if isinstance(raw, dict):
        value = raw.get("value", raw.get("name"))
        return Choice(
            value=value,
            name=raw.get("name"),
            short=raw.get("short"),
            hint=raw.get("hint"),
            disabled=raw.get("disabled") or False,
        )
    return Choice(value=raw)


def is_selectable(entry: Entry) -> bool:
    return isinstance(entry, Choice) and entry.selectable


class ChoiceList:
    """Immutable snapshot of the entries produced by one search.

    Selection indexes count selectable choices only; separators and disabled
    entries are skipped. ``nb_choices`` is computed once at build time.
    """

    __slots__ = ("entries", "_selectable", "nb_choices")

    def __init__(self, entries: Tuple[Entry, ...]) -> None:
        self.entries = entries
        self._selectable: Tuple[Choice, ...] = tuple(e for e in entries if is_selectable(e))  # type: ignore[misc]
        self.nb_choices = len(self._selectable)

    @classmethod
    def build(cls, raw_entries: Optional[Iterable[Any]]) -> "ChoiceList":
        return cls(tuple(_normalize_choice(r) for r in (raw_entries or ())))

    @classmethod
    def empty(cls) -> "ChoiceList":
        return cls(())

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.entries)

    @property
    def choices(self) -> List[Choice]:
        return list(self._selectable)

    def get_choice(self, index: int) -> Choice:
        if index < 0 or index >= self.nb_choices:
            raise OutOfRangeSelection(f"no selectable choice at index {index} (have {self.nb_choices})")
        return self._selectable[index]

    def clamp_index(self, proposed: int) -> int:
        if self.nb_choices == 0:
            return 0
        return max(0, min(proposed, self.nb_choices - 1))

    def index_of(self, value: Any) -> int:
        """Return the selection index of the choice carrying ``value`` or -1."""
        for i, choice in enumerate(self._selectable):
            if choice.value == value:
                return i
        return -1
