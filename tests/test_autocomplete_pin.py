"""Tests for qkpr.prompts.autocomplete_pin module."""

import asyncio

import pytest
from prompt_toolkit.input import create_pipe_input
from prompt_toolkit.output import DummyOutput

from qkpr.prompts import AutocompletePinPrompt, Choice, PromptStatus, Separator, ValidationError
from qkpr.prompts.autocomplete_pin import SELECT_INVALID, SUGGEST_INVALID


def values(prompt):
    return [c.value for c in prompt.choices.choices]


def started(source, **kw):
    prompt = AutocompletePinPrompt("Pick:", source, **kw)
    prompt.search(prompt.query)
    return prompt


def substring_source(items):
    def source(query, ctx):
        return [i for i in items if query in i]

    return source


class TestInitialState:
    """Tests for the prompt before and after its first search."""

    def test_nothing_painted_before_first_result(self):
        """Test that the first frame has no list, no spinner and no empty text."""
        prompt = AutocompletePinPrompt("Pick:", substring_source(["a"]))

        assert prompt.status is PromptStatus.INITIALIZING
        assert prompt.render().bottom == []

    def test_first_search_displays_list(self):
        prompt = started(substring_source(["main", "dev"]))

        assert prompt.status is PromptStatus.DISPLAYING
        assert prompt.searched_once
        assert values(prompt) == ["main", "dev"]
        assert prompt.selected == 0

    def test_default_is_preselected(self):
        prompt = started(substring_source(["main", "dev", "release"]), default="release")
        assert prompt.highlighted().value == "release"

    def test_missing_source_is_rejected(self):
        with pytest.raises(TypeError):
            AutocompletePinPrompt("Pick:", None)


class TestSelectionContinuity:
    """Tests for keeping the highlighted value across refreshes."""

    def test_highlight_survives_requery(self):
        """Test that the highlighted value is kept when it moves to another index."""
        prompt = started(substring_source(["a", "b", "c", "xb"]))
        prompt.move_down()
        assert prompt.highlighted().value == "b"

        prompt.set_query("b")

        assert values(prompt) == ["b", "xb"]
        assert prompt.highlighted().value == "b"

    def test_lost_highlight_falls_back_to_first(self):
        """Test that a vanished value clamps the selection to the list."""
        prompt = started(substring_source(["apple", "banana", "cherry"]))
        prompt.move_down()
        prompt.move_down()

        prompt.set_query("an")

        assert values(prompt) == ["banana"]
        assert prompt.selected == 0

    def test_lost_highlight_prefers_default(self):
        prompt = started(substring_source(["dev", "nightly", "main", "test"]), default="main")
        prompt.move_down()
        assert prompt.highlighted().value == "test"

        prompt.set_query("n")

        assert values(prompt) == ["nightly", "main"]
        assert prompt.highlighted().value == "main"

    def test_same_query_does_not_search_again(self, mocker):
        source = mocker.Mock(return_value=["a"])
        prompt = started(source)
        prompt.set_query("")

        assert source.call_count == 1


class TestNavigation:
    """Tests for moving the highlight."""

    def test_down_wraps_when_looping(self):
        prompt = started(substring_source(["a", "b"]))
        prompt.move_down()
        prompt.move_down()
        assert prompt.selected == 0

    def test_up_wraps_when_looping(self):
        prompt = started(substring_source(["a", "b", "c"]))
        prompt.move_up()
        assert prompt.highlighted().value == "c"

    def test_no_wrap_without_loop(self):
        prompt = started(substring_source(["a", "b"]), loop=False)
        prompt.move_up()
        assert prompt.selected == 0
        prompt.move_down()
        prompt.move_down()
        assert prompt.selected == 1

    def test_separators_are_skipped(self):
        prompt = started(lambda q, ctx: ["a", Separator(), Choice("x", disabled=True), "b"])
        prompt.move_down()
        assert prompt.highlighted().value == "b"

    def test_empty_list_keeps_index_zero(self):
        prompt = started(lambda q, ctx: [])
        prompt.move_down()
        prompt.move_up()
        assert prompt.selected == 0
        assert prompt.highlighted() is None

    def test_typing_and_backspace(self):
        prompt = started(substring_source(["main", "dev"]))
        prompt.insert_text("d")
        prompt.insert_text("e")
        assert values(prompt) == ["dev"]

        prompt.delete_before_cursor()
        prompt.delete_before_cursor()

        assert prompt.query == ""
        assert values(prompt) == ["main", "dev"]


class TestAsyncSearch:
    """Tests for sources answering with awaitables."""

    def test_stale_response_never_shown(self):
        """Test that the answer to an older query is dropped."""

        async def scenario():
            loop = asyncio.get_running_loop()
            futures = {}

            def source(query, ctx):
                futures[query] = loop.create_future()
                return futures[query]

            prompt = started(source)
            futures[""].set_result(["main", "dev"])
            await prompt.drain()

            prompt.insert_text("a")
            prompt.insert_text("b")
            futures["ab"].set_result(["ab-branch"])
            futures["a"].set_result(["a-branch", "another"])
            await prompt.drain()
            return prompt

        prompt = asyncio.run(scenario())

        assert values(prompt) == ["ab-branch"]
        assert prompt.query == "ab"

    def test_highlight_survives_back_to_back_searches(self):
        """Test that the highlight carries over several pending searches."""

        async def scenario():
            loop = asyncio.get_running_loop()
            futures = {}

            def source(query, ctx):
                futures[query] = loop.create_future()
                return futures[query]

            prompt = started(source)
            futures[""].set_result(["a", "b", "c"])
            await prompt.drain()
            prompt.move_down()
            prompt.move_down()

            prompt.insert_text("x")
            prompt.insert_text("y")
            futures["xy"].set_result(["z", "c"])
            futures["x"].set_result(["q"])
            await prompt.drain()
            return prompt

        prompt = asyncio.run(scenario())

        assert values(prompt) == ["z", "c"]
        assert prompt.highlighted().value == "c"

    def test_searching_indicator_after_first_result(self):
        """Test that a pending re-query shows the searching text."""

        async def scenario():
            loop = asyncio.get_running_loop()
            futures = {}

            def source(query, ctx):
                futures[query] = loop.create_future()
                return futures[query]

            prompt = started(source)
            blank = prompt.render().bottom
            futures[""].set_result(["main"])
            await prompt.drain()
            prompt.insert_text("m")
            text = prompt.render().to_text()
            futures["m"].set_result(["main"])
            await prompt.drain()
            return blank, text

        blank, text = asyncio.run(scenario())

        assert blank == []
        assert "Searching..." in text


class TestSourceErrors:
    """Tests for failing sources."""

    def test_error_restores_previous_list(self):
        def source(query, ctx):
            if query == "boom":
                raise RuntimeError("index unavailable")
            return ["main", "dev"]

        prompt = started(source)
        prompt.move_down()
        prompt.set_query("boom")

        assert prompt.status is PromptStatus.DISPLAYING
        assert values(prompt) == ["main", "dev"]
        assert prompt.highlighted().value == "dev"
        assert ">> index unavailable" in prompt.render().to_text()

    def test_error_cleared_by_typing(self):
        def source(query, ctx):
            if query == "x":
                raise RuntimeError("bad")
            return ["a"]

        prompt = started(source)
        prompt.set_query("x")
        prompt.set_query("")

        assert prompt.error is None


class TestPin:
    """Tests for Ctrl+P pin toggling."""

    def test_pin_refreshes_markers_and_keeps_query(self):
        pinned = set()

        def source(query, ctx):
            return [
                Choice(b, name=("* " if b in pinned else "  ") + b)
                for b in ["feat/a", "feat/b", "main"]
                if query in b
            ]

        async def scenario():
            prompt = started(source, on_pin=pinned.add)
            prompt.set_query("feat")
            prompt.move_down()
            prompt.toggle_pin()
            await prompt.drain()
            return prompt

        prompt = asyncio.run(scenario())

        assert pinned == {"feat/b"}
        assert prompt.query == "feat"
        assert prompt.highlighted().value == "feat/b"
        assert prompt.highlighted().label == "* feat/b"

    def test_highlight_moved_during_slow_pin_is_kept(self):
        """Test that keys pressed while the pin callback runs are honoured."""
        pinned = []

        async def scenario():
            release = asyncio.Event()

            async def on_pin(value):
                await release.wait()
                pinned.append(value)

            def source(query, ctx):
                return sorted(["a", "b", "c"], key=lambda v: v not in pinned)

            prompt = started(source, on_pin=on_pin)
            prompt.move_up()
            prompt.toggle_pin()
            await asyncio.sleep(0)
            prompt.move_up()
            release.set()
            await prompt.drain()
            return prompt

        prompt = asyncio.run(scenario())

        assert pinned == ["c"]
        assert values(prompt) == ["c", "a", "b"]
        assert prompt.highlighted().value == "b"

    def test_failed_pin_shows_error_and_keeps_list(self):
        def on_pin(value):
            raise OSError("disk full")

        async def scenario():
            prompt = started(substring_source(["a", "b"]), on_pin=on_pin)
            prompt.toggle_pin()
            await prompt.drain()
            return prompt

        prompt = asyncio.run(scenario())

        assert prompt.error == "Pin failed: disk full"
        assert values(prompt) == ["a", "b"]
        assert not prompt.answered

    def test_pin_without_callback_is_ignored(self):
        prompt = started(substring_source(["a"]))
        prompt.toggle_pin()
        assert prompt.error is None

    def test_pin_hint_only_when_pinnable(self):
        with_pin = started(substring_source(["a"]), on_pin=lambda v: None)
        without = started(substring_source(["a"]))

        assert "Ctrl+P to Pin" in with_pin.render().to_text()
        assert "Ctrl+P to Pin" not in without.render().to_text()


class TestSubmit:
    """Tests for answering the prompt."""

    def test_enter_answers_highlighted_value(self):
        prompt = started(lambda q, ctx: [Choice("feat/x", name="📌 feat/x", short="feat/x")])
        prompt.submit()

        assert prompt.answered
        assert prompt.answer == "feat/x"
        assert prompt.render().to_text() == "? Pick: feat/x"

    def test_enter_without_selection_searches_again(self, mocker):
        source = mocker.Mock(return_value=[])
        prompt = started(source)
        prompt.submit()

        assert not prompt.answered
        assert source.call_count == 2

    def test_answer_freezes_prompt(self):
        prompt = started(substring_source(["a", "b"]))
        prompt.submit()
        prompt.move_down()
        prompt.set_query("b")

        assert prompt.answer == "a"
        assert prompt.query == ""

    def test_filter_transforms_answer(self):
        prompt = started(substring_source(["main"]), filter=str.upper)
        prompt.submit()
        assert prompt.answer == "MAIN"

    def test_filter_error_propagates_without_app(self):
        def bad_filter(value):
            raise ValueError("no")

        prompt = started(substring_source(["main"]), filter=bad_filter)
        with pytest.raises(ValueError):
            prompt.submit()


class TestValidation:
    """Tests for the validate callback."""

    def test_message_is_shown(self):
        prompt = started(substring_source(["main"]), validate=lambda choice, ctx: "protected branch")
        prompt.submit()

        assert not prompt.answered
        assert ">> protected branch" in prompt.render().to_text()

    def test_false_uses_default_message(self):
        prompt = started(substring_source(["main"]), validate=lambda choice, ctx: False)
        prompt.submit()
        assert prompt.error == SELECT_INVALID

    def test_validation_error_message(self):
        def validate(choice, ctx):
            raise ValidationError("not allowed")

        prompt = started(substring_source(["main"]), validate=validate)
        prompt.submit()
        assert prompt.error == "not allowed"

    def test_validator_receives_choice_and_context(self):
        seen = []

        def validate(choice, ctx):
            seen.append((choice.value, ctx))
            return True

        prompt = started(substring_source(["main"]), validate=validate, context={"repo": "x"})
        prompt.submit()

        assert seen == [("main", {"repo": "x"})]
        assert prompt.answer == "main"

    def test_async_validation_answers_the_validated_choice(self):
        """Test that moving the highlight during validation does not change the answer."""

        async def validate(choice, ctx):
            await asyncio.sleep(0)
            return choice.value != "protected"

        async def scenario():
            prompt = started(substring_source(["main", "protected"]), validate=validate)
            prompt.submit()
            prompt.move_down()
            await prompt.drain()
            return prompt

        prompt = asyncio.run(scenario())

        assert prompt.answer == "main"

    def test_enter_ignored_while_validating(self):
        calls = []

        async def validate(choice, ctx):
            calls.append(choice.value)
            await asyncio.sleep(0)
            return False

        async def scenario():
            prompt = started(substring_source(["main", "dev"]), validate=validate)
            prompt.submit()
            prompt.move_down()
            prompt.submit()
            await prompt.drain()
            return prompt

        prompt = asyncio.run(scenario())

        assert calls == ["main"]
        assert prompt.error == SELECT_INVALID

    def test_query_edit_drops_pending_validation(self):
        async def validate(choice, ctx):
            await asyncio.sleep(0)
            return True

        async def scenario():
            prompt = started(substring_source(["main", "dev"]), validate=validate)
            prompt.submit()
            prompt.set_query("d")
            await prompt.drain()
            first = prompt.answered
            prompt.submit()
            await prompt.drain()
            return first, prompt

        first, prompt = asyncio.run(scenario())

        assert first is False
        assert prompt.answer == "dev"

    def test_async_validator_failure_is_shown(self):
        async def validate(choice, ctx):
            raise RuntimeError("service down")

        async def scenario():
            prompt = started(substring_source(["main"]), validate=validate)
            prompt.submit()
            await prompt.drain()
            return prompt

        prompt = asyncio.run(scenario())

        assert not prompt.answered
        assert prompt.error == "service down"
        assert ">> service down" in prompt.render().to_text()

    def test_sync_validator_failure_is_shown(self):
        def validate(choice, ctx):
            raise KeyError("lookup")

        prompt = started(substring_source(["main"]), validate=validate)
        prompt.submit()

        assert not prompt.answered
        assert prompt.error == "'lookup'"

    def test_async_validation(self):
        async def validate(choice, ctx):
            await asyncio.sleep(0)
            return choice.value != "main"

        async def scenario():
            prompt = started(substring_source(["main", "dev"]), validate=validate)
            prompt.submit()
            await prompt.drain()
            first = prompt.error
            prompt.move_down()
            prompt.submit()
            await prompt.drain()
            return first, prompt

        first, prompt = asyncio.run(scenario())

        assert first == SELECT_INVALID
        assert prompt.answer == "dev"


class TestSuggestOnly:
    """Tests for free text mode."""

    def test_enter_with_empty_result_answers_typed_text(self):
        prompt = started(lambda q, ctx: [], suggest_only=True)
        prompt.set_query("gemini-exp-42")
        prompt.submit()

        assert prompt.answer == "gemini-exp-42"

    def test_empty_line_uses_default(self):
        prompt = started(substring_source(["gemini-2.0-flash"]), suggest_only=True, default="gemini-2.0-flash")
        prompt.submit()
        assert prompt.answer == "gemini-2.0-flash"

    def test_tab_autocompletes_without_searching(self, mocker):
        source = mocker.Mock(return_value=["gemini-2.5-pro"])
        prompt = started(source, suggest_only=True)
        prompt.autocomplete()

        assert prompt.query == "gemini-2.5-pro"
        assert source.call_count == 1

    def test_tab_ignored_in_select_mode(self):
        prompt = started(substring_source(["main"]))
        prompt.autocomplete()
        assert prompt.query == ""

    def test_empty_answer_rejected(self):
        prompt = started(lambda q, ctx: [], suggest_only=True, validate=lambda text, ctx: bool(text) or "")
        prompt.submit()
        assert prompt.error == SUGGEST_INVALID


class TestEndToEnd:
    """Drive the prompt through a real prompt_toolkit application."""

    def _run(self, keys, source, **kw):
        async def scenario():
            with create_pipe_input() as inp:
                inp.send_text(keys)
                prompt = AutocompletePinPrompt("Branch:", source, input=inp, output=DummyOutput(), **kw)
                try:
                    return await prompt.execute_async()
                except KeyboardInterrupt:
                    return KeyboardInterrupt

        return asyncio.run(scenario())

    def test_type_and_enter(self):
        assert self._run("dev\r", substring_source(["main", "develop"])) == "develop"

    def test_ctrl_n_moves_down(self):
        assert self._run("\x0e\r", substring_source(["main", "develop"])) == "develop"

    def test_bracketed_paste_searches(self):
        keys = "\x1b[200~dev\x1b[201~\r"
        assert self._run(keys, substring_source(["main", "develop"])) == "develop"

    def test_ctrl_c_interrupts(self):
        assert self._run("\x03", substring_source(["main"])) is KeyboardInterrupt
