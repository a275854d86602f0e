"""Searchable single-select list prompt with an in-place pin toggle.

The prompt keeps a query line on top of a list produced by a caller supplied
``source(query, context)``. Every edit of the query re-runs the source; the
source may answer synchronously or with an awaitable, and only the answer to
the most recent query is ever shown. ``Ctrl+P`` hands the highlighted value
to ``on_pin`` and refreshes the list once it completes, keeping both the
typed text and the highlighted item.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Set

from prompt_toolkit.application import Application
from prompt_toolkit.filters import Condition
from prompt_toolkit.input import Input
from prompt_toolkit.key_binding import KeyBindings, KeyPressEvent
from prompt_toolkit.keys import Keys
from prompt_toolkit.layout import ConditionalContainer, HSplit, Layout, Window
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.output import Output
from prompt_toolkit.styles import BaseStyle, merge_styles

from .choices import Choice, ChoiceList
from .exceptions import OutOfRangeSelection, SourceError, ValidationError
from .render import DEFAULT_STYLE, Frame, RenderOptions, render_frame
from .search import SearchController, Source
from .state import PromptStatus, RenderState

logger = logging.getLogger(__name__)

_NOTHING = object()

SUGGEST_INVALID = "Enter something, tab to autocomplete!"
SELECT_INVALID = "Please select a valid option"


class AutocompletePinPrompt:
    def __init__(
        self,
        message: str,
        source: Source,
        *,
        default: Any = None,
        page_size: int = 10,
        on_pin: Optional[Callable[[Any], Any]] = None,
        validate: Optional[Callable[[Any, Any], Any]] = None,
        filter: Optional[Callable[[Any], Any]] = None,
        suggest_only: bool = False,
        loop: bool = True,
        context: Any = None,
        search_text: str = "Searching...",
        empty_text: str = "No results...",
        pointer: str = "❯",
        style: Optional[BaseStyle] = None,
        input: Optional[Input] = None,
        output: Optional[Output] = None,
    ) -> None:
        if source is None:
            raise TypeError("source is required")
        self.options = RenderOptions(
            message=message,
            page_size=page_size,
            suggest_only=suggest_only,
            pinnable=on_pin is not None,
            search_text=search_text,
            empty_text=empty_text,
            pointer=pointer,
        )
        self.query = ""
        self.choices = ChoiceList.empty()
        self.selected = 0
        self.status = PromptStatus.INITIALIZING
        self.searched_once = False
        self.error: Optional[str] = None
        self.answer: Any = None
        self.answer_label: Optional[str] = None

        self._default = default
        self._on_pin = on_pin
        self._validate = validate
        self._filter = filter
        self._suggest_only = suggest_only
        self._loop = loop
        self._context = context
        self._style = style
        self._input = input
        self._output = output

        self._last_query: Optional[str] = None
        # value highlighted before a refresh, restored once the refresh lands
        self._carry: Any = _NOTHING
        self._previous = self.choices
        # validation in flight; a query edit makes its token stale
        self._validation_token = 0
        self._validating = False
        self._tasks: Set["asyncio.Future[Any]"] = set()
        self._app: Optional[Application] = None
        self._searcher = SearchController(
            source,
            self._apply_result,
            self._apply_error,
            context=context,
            spawn=self._spawn,
        )

    # ------------------------------------------------------------------
    # state
    # ------------------------------------------------------------------

    @property
    def answered(self) -> bool:
        return self.status is PromptStatus.ANSWERED

    def snapshot(self) -> RenderState:
        return RenderState(
            query=self.query,
            choices=self.choices,
            selected=self.selected,
            status=self.status,
            searched_once=self.searched_once,
            error=self.error,
            answer_label=self.answer_label,
        )

    def render(self) -> Frame:
        return render_frame(self.options, self.snapshot())

    def highlighted(self):
        """Return the highlighted choice or ``None`` when nothing is selectable."""
        try:
            return self.choices.get_choice(self.selected)
        except OutOfRangeSelection:
            return None

    # ------------------------------------------------------------------
    # searching
    # ------------------------------------------------------------------

    def search(self, query: str) -> None:
        current = self.highlighted()
        if current is not None:
            self._carry = current.value
        if self.status is not PromptStatus.SEARCHING:
            self._previous = self.choices
        self.selected = 0
        self.choices = ChoiceList.empty()
        self.status = PromptStatus.SEARCHING
        self._last_query = query
        self._invalidate()
        self._searcher.run(query)

    def _restore_selection(self, choices: ChoiceList) -> int:
        index = -1
        if self._carry is not _NOTHING:
            index = choices.index_of(self._carry)
        if index < 0 and self._default is not None:
            index = choices.index_of(self._default)
        return choices.clamp_index(max(index, 0))

    def _apply_result(self, query: str, entries: Any) -> None:
        if self.answered:
            return
        choices = ChoiceList.build(entries)
        self.choices = choices
        self.selected = self._restore_selection(choices)
        self._carry = _NOTHING
        self.status = PromptStatus.DISPLAYING
        self.searched_once = True
        self._invalidate()

    def _apply_error(self, err: SourceError) -> None:
        if self.answered:
            return
        self.choices = self._previous
        self.selected = self._restore_selection(self.choices)
        self._carry = _NOTHING
        self.status = PromptStatus.DISPLAYING
        self.searched_once = True
        self.error = str(err)
        self._invalidate()

    # ------------------------------------------------------------------
    # key handling
    # ------------------------------------------------------------------

    def insert_text(self, text: str) -> None:
        self.set_query(self.query + text)

    def delete_before_cursor(self) -> None:
        self.set_query(self.query[:-1])

    def set_query(self, text: str) -> None:
        if self.answered:
            return
        self.error = None
        self.query = text
        if self._validating:
            self._validation_token += 1
            self._validating = False
        self._invalidate()
        if self.query != self._last_query:
            self.search(self.query)

    def move_down(self) -> None:
        if self.answered:
            return
        self.error = None
        total = self.choices.nb_choices
        if self.selected < total - 1:
            self.selected += 1
        elif self._loop:
            self.selected = 0
        self.selected = self.choices.clamp_index(self.selected)
        self._invalidate()

    def move_up(self) -> None:
        if self.answered:
            return
        self.error = None
        total = self.choices.nb_choices
        if self.selected > 0:
            self.selected -= 1
        elif self._loop:
            self.selected = total - 1
        self.selected = self.choices.clamp_index(self.selected)
        self._invalidate()

    def toggle_pin(self) -> None:
        if self.answered or self._on_pin is None:
            return
        choice = self.highlighted()
        if choice is None:
            return
        self._spawn(self._pin(choice.value))

    async def _pin(self, value: Any) -> None:
        logger.debug("toggling pin for %r", value)
        try:
            result = self._on_pin(value)  # type: ignore[misc]
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            logger.debug("pin callback failed for %r", value, exc_info=exc)
            if not self.answered:
                self.error = f"Pin failed: {exc}"
                self._invalidate()
            return
        if not self.answered:
            # pin state lives outside the prompt, so the list has to be fetched again
            self.search(self.query)

    def autocomplete(self) -> None:
        if self.answered or not self._suggest_only:
            return
        choice = self.highlighted()
        if choice is None:
            return
        self.query = str(choice.value)
        self._invalidate()

    def submit(self) -> None:
        if self.answered or self._validating:
            return
        self.error = None
        line = self.query
        if self._suggest_only and not line:
            line = "" if self._default is None else str(self._default)

        choice = None if self._suggest_only else self.highlighted()
        if not self._suggest_only and choice is None:
            self.search(self.query)
            return

        if self._validate is None:
            self._finish(line, choice)
            return

        candidate = line if self._suggest_only else choice
        try:
            result = self._validate(candidate, self._context)
        except ValidationError as exc:
            self._reject(exc.message)
            return
        except Exception as exc:
            logger.debug("validator failed for %r", candidate, exc_info=exc)
            self._reject(str(exc))
            return
        if inspect.isawaitable(result):
            self._validation_token += 1
            self._validating = True
            self._spawn(self._await_validation(result, line, choice, self._validation_token))
        else:
            self._check_validation(result, line, choice)

    async def _await_validation(
        self, pending: Awaitable[Any], line: str, choice: Optional[Choice], token: int
    ) -> None:
        message: Optional[str] = None
        try:
            result = await pending
        except ValidationError as exc:
            message = exc.message
        except Exception as exc:
            logger.debug("validator failed for %r", line if choice is None else choice.value, exc_info=exc)
            message = str(exc)
        if token != self._validation_token:
            logger.debug("dropping stale validation (token %d, last %d)", token, self._validation_token)
            return
        self._validating = False
        if message is not None:
            self._reject(message)
        else:
            self._check_validation(result, line, choice)

    def _check_validation(self, result: Any, line: str, choice: Optional[Choice]) -> None:
        if result is True:
            self._finish(line, choice)
        else:
            self._reject(result if isinstance(result, str) else "")

    def _reject(self, message: str) -> None:
        if self.answered:
            return
        self.error = message or (SUGGEST_INVALID if self._suggest_only else SELECT_INVALID)
        self._invalidate()

    def _finish(self, line: str, choice: Optional[Choice] = None) -> None:
        if self.answered:
            return
        if self._suggest_only:
            value: Any = line
            label: Optional[str] = line
            self.query = ""
        else:
            choice = choice or self.highlighted()
            if choice is None:
                self.search(self.query)
                return
            value = choice.value
            label = choice.short_label

        if self._filter is None:
            self._answer(value, label)
            return
        try:
            filtered = self._filter(value)
        except Exception as exc:
            self._abort(exc)
            return
        if inspect.isawaitable(filtered):
            self._spawn(self._await_filter(filtered, label))
        else:
            self._answer(filtered, label)

    async def _await_filter(self, pending: Awaitable[Any], label: Optional[str]) -> None:
        try:
            value = await pending
        except Exception as exc:
            self._abort(exc)
            return
        self._answer(value, label)

    def _answer(self, value: Any, label: Optional[str]) -> None:
        if self.answered:
            return
        if self._suggest_only:
            label = "" if value is None else str(value)
        self.answer = value
        self.answer_label = label
        self.status = PromptStatus.ANSWERED
        self._invalidate()
        if self._app is not None and self._app.is_running:
            self._app.exit(result=value)

    def _abort(self, exc: BaseException) -> None:
        if self._app is not None and self._app.is_running:
            self._app.exit(exception=exc)
            return
        raise exc

    # ------------------------------------------------------------------
    # running
    # ------------------------------------------------------------------

    def _spawn(self, coro: Awaitable[Any]) -> "asyncio.Future[Any]":
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait until no search, pin or validation task is in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _invalidate(self) -> None:
        if self._app is not None:
            self._app.invalidate()

    def _start(self) -> None:
        self.search(self.query)

    def _key_bindings(self) -> KeyBindings:
        kb = KeyBindings()

        @kb.add(Keys.Any)
        def _type(event: KeyPressEvent) -> None:
            data = event.data
            if data and data.isprintable() and not data.startswith("\x1b"):
                self.insert_text(data)

        @kb.add(Keys.BracketedPaste)
        def _paste(event: KeyPressEvent) -> None:
            text = "".join(ch for ch in event.data if ch.isprintable())
            if text:
                self.insert_text(text)

        @kb.add("backspace")
        def _backspace(event: KeyPressEvent) -> None:
            self.delete_before_cursor()

        @kb.add("down")
        @kb.add("c-n")
        def _down(event: KeyPressEvent) -> None:
            self.move_down()

        @kb.add("up")
        def _up(event: KeyPressEvent) -> None:
            self.move_up()

        @kb.add("c-p")
        def _pin(event: KeyPressEvent) -> None:
            self.toggle_pin()

        @kb.add("tab")
        def _tab(event: KeyPressEvent) -> None:
            self.autocomplete()

        @kb.add("enter")
        def _enter(event: KeyPressEvent) -> None:
            self.submit()

        @kb.add("c-c")
        def _interrupt(event: KeyPressEvent) -> None:
            event.app.exit(exception=KeyboardInterrupt())

        @kb.add("c-d")
        def _eof(event: KeyPressEvent) -> None:
            if not self.query:
                event.app.exit(exception=EOFError())

        return kb

    def _build_app(self) -> Application:
        content = Window(
            FormattedTextControl(lambda: self.render().content, show_cursor=True),
            dont_extend_height=True,
            wrap_lines=True,
        )
        bottom = ConditionalContainer(
            Window(FormattedTextControl(lambda: self.render().bottom), dont_extend_height=True),
            filter=Condition(lambda: bool(self.render().bottom)),
        )
        styles = [DEFAULT_STYLE] if self._style is None else [DEFAULT_STYLE, self._style]
        return Application(
            layout=Layout(HSplit([content, bottom])),
            key_bindings=self._key_bindings(),
            style=merge_styles(styles),
            full_screen=False,
            erase_when_done=False,
            mouse_support=False,
            input=self._input,
            output=self._output,
        )

    async def execute_async(self) -> Any:
        self._app = self._build_app()
        try:
            return await self._app.run_async(pre_run=self._start)
        finally:
            # a source that never answers must not keep the caller waiting
            for task in list(self._tasks):
                task.cancel()

    def execute(self) -> Any:
        return asyncio.run(self.execute_async())
