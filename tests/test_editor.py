import asyncio

import pytest

from wikimark.editor import Editor, SelectionScheduler, toggle_format, FORMAT_BUTTONS
from wikimark.exceptions import ConfigurationError
from wikimark.models import Selection, Segment, StyleTag


class FakeControl:
    def __init__(self):
        self.calls = []

    def set_selection(self, start, end):
        self.calls.append(("select", start, end))

    def focus(self):
        self.calls.append(("focus",))


@pytest.fixture
def loop():
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


def run_pending(loop, delay=0.0):
    loop.run_until_complete(asyncio.sleep(delay + 0.01))


def test_toggle_on_wraps_selection():
    result = toggle_format("hello world", Selection(0, 5), "**")
    assert result.text == "**hello** world"
    assert result.selection == Selection(2, 7)
    assert result.unwrapped is False


def test_toggle_off_unwraps_selection():
    result = toggle_format("**hello** world", Selection(2, 7), "**")
    assert result.text == "hello world"
    assert result.selection == Selection(0, 5)
    assert result.unwrapped is True


def test_empty_selection_wrap_and_unwrap():
    result = toggle_format("ab", Selection(1, 1), "_")
    assert result.text == "a__b"
    assert result.selection == Selection(2, 2)

    result = toggle_format(result.text, result.selection, "_")
    assert result.text == "ab"
    assert result.selection == Selection(1, 1)


def test_reversed_selection_is_normalized():
    result = toggle_format("hello world", Selection(11, 6), "~")
    assert result.text == "hello ~world~"
    assert result.selection == Selection(7, 12)


def test_toggle_twice_restores_text():
    test_cases = [
        ("hello world", Selection(0, 5)),
        ("hello world", Selection(6, 11)),
        ("hello world", Selection(0, 11)),
        ("", Selection(0, 0)),
        ("one *two* three", Selection(4, 9)),
    ]

    for text, selection in test_cases:
        for marker in ["*", "_", "~", "`", "**", "__", "```"]:
            first = toggle_format(text, selection, marker)
            second = toggle_format(first.text, first.selection, marker)
            assert second.text == text, f"{marker!r} on {text!r} gave {second.text!r}"
            assert second.selection == selection.normalized()


def test_wrap_at_text_edges():
    assert toggle_format("abc", Selection(0, 0), "*").text == "**abc"
    assert toggle_format("abc", Selection(3, 3), "*").text == "abc**"
    assert toggle_format("abc", Selection(0, 3), "`").text == "`abc`"


def test_bold_marker_does_not_unwrap_double_asterisks():
    # "*" sees "**" around the selection and unwraps only one layer of it
    result = toggle_format("**hi**", Selection(2, 4), "*")
    assert result.text == "*hi*"
    assert result.unwrapped is True

    # A run wrapped in "**" with extra spacing is not recognised by "*"
    result = toggle_format("** hi **", Selection(3, 5), "*")
    assert result.text == "** *hi* **"
    assert result.unwrapped is False


def test_any_marker_string_is_accepted():
    result = toggle_format("note", Selection(0, 4), "<<")
    assert result.text == "<<note<<"
    assert result.selection == Selection(2, 6)


def test_empty_marker_is_a_no_op():
    result = toggle_format("abc", Selection(2, 1), "")
    assert result.text == "abc"
    assert result.selection == Selection(1, 2)


def test_out_of_range_selection_is_clamped():
    result = toggle_format("abc", Selection(-4, 99), "*")
    assert result.text == "*abc*"
    assert result.selection == Selection(1, 4)


def test_scheduler_applies_selection_and_focus(loop):
    control = FakeControl()
    scheduler = SelectionScheduler(control, delay=0, loop=loop)

    assert scheduler.schedule(Selection(2, 7))
    assert control.calls == []
    assert scheduler.pending == Selection(2, 7)

    run_pending(loop)
    assert control.calls == [("select", 2, 7), ("focus",)]
    assert scheduler.pending is None


def test_scheduler_keeps_only_latest_request(loop):
    control = FakeControl()
    scheduler = SelectionScheduler(control, delay=0, loop=loop)

    scheduler.schedule(Selection(1, 1))
    scheduler.schedule(Selection(3, 4))

    run_pending(loop)
    assert control.calls == [("select", 3, 4), ("focus",)]


def test_scheduler_close_drops_pending_update(loop):
    control = FakeControl()
    scheduler = SelectionScheduler(control, delay=0, loop=loop)

    scheduler.schedule(Selection(1, 2))
    scheduler.close()
    run_pending(loop)

    assert control.calls == []
    assert scheduler.closed
    assert scheduler.schedule(Selection(0, 0)) is False


def test_scheduler_without_control_does_nothing(loop):
    scheduler = SelectionScheduler(None, delay=0, loop=loop)
    scheduler.schedule(Selection(1, 2))
    run_pending(loop)
    assert scheduler.pending is None


def test_editor_apply_format_commits_and_defers_selection(loop):
    control = FakeControl()
    editor = Editor("hello world", control=control, selection_delay=0, loop=loop)
    editor.on_selection_change(5, 0)

    result = editor.apply_format("*")

    assert editor.text == "*hello* world"
    assert editor.selection == Selection(1, 6)
    assert result.selection == Selection(1, 6)
    assert editor.segments == [Segment("hello", StyleTag.BOLD), Segment(" world")]
    assert control.calls == []

    run_pending(loop)
    assert control.calls == [("select", 1, 6), ("focus",)]


def test_editor_new_edit_discards_stale_selection(loop):
    control = FakeControl()
    editor = Editor("hello", control=control, selection_delay=0.05, loop=loop)
    editor.on_selection_change(0, 5)

    editor.apply_format("_")
    editor.set_text("_hello_ there")
    run_pending(loop, 0.05)

    assert control.calls == []
    assert editor.text == "_hello_ there"


def test_editor_close_before_deferred_step(loop):
    control = FakeControl()
    editor = Editor("hello", control=control, selection_delay=0, loop=loop)
    editor.on_selection_change(0, 5)

    editor.apply_format("~")
    editor.close()
    run_pending(loop)

    assert control.calls == []
    assert editor.text == "~hello~"


def test_editor_toolbar_buttons():
    editor = Editor("hi")
    editor.on_selection_change(0, 2)

    for name, marker in FORMAT_BUTTONS.items():
        result = editor.apply_button(name)
        assert result.text == f"{marker}hi{marker}"
        result = editor.apply_button(name)
        assert result.text == "hi"


def test_editor_submit_trims_and_clears():
    editor = Editor("  *news* \n")
    assert editor.submit() == "*news*"
    assert editor.text == ""
    assert editor.selection == Selection(0, 0)


def test_editor_set_text_clamps_selection():
    editor = Editor("hello world")
    assert editor.selection == Selection(11, 11)
    editor.set_text("hi")
    assert editor.selection == Selection(2, 2)


def test_selection_delay_from_env(monkeypatch):
    monkeypatch.setenv("WIKIMARK_SELECTION_DELAY", "0.2")
    assert Editor().scheduler.delay == 0.2


def test_invalid_selection_delay_from_env(monkeypatch):
    monkeypatch.setenv("WIKIMARK_SELECTION_DELAY", "soon")
    with pytest.raises(ConfigurationError):
        Editor()


def test_editor_converts_utf16_offsets_at_control_boundary(loop):
    control = FakeControl()
    editor = Editor("😀 hi", control=control, selection_delay=0, loop=loop)

    # The control reports "hi" in UTF-16 units; the emoji takes two
    editor.on_selection_change(3, 5)
    assert editor.selection == Selection(2, 4)

    result = editor.apply_format("*")
    assert result.text == "😀 *hi*"
    assert editor.selection == Selection(3, 5)

    run_pending(loop)
    assert control.calls == [("select", 4, 6), ("focus",)]


def test_editor_without_loop_fails_before_changing_text():
    control = FakeControl()
    editor = Editor("hello", control=control, selection_delay=0)
    editor.on_selection_change(0, 5)

    with pytest.raises(RuntimeError):
        editor.apply_format("*")

    assert editor.text == "hello"
    assert editor.selection == Selection(0, 5)
    assert editor.scheduler.pending is None
    assert control.calls == []


def test_editor_ignores_cursor_reset_while_selection_pending(loop):
    control = FakeControl()
    editor = Editor("hello world", control=control, selection_delay=0, loop=loop)
    editor.on_selection_change(0, 5)
    editor.apply_format("_")

    # The control moves its cursor to the end after the text change
    editor.on_selection_change(13, 13)
    assert editor.selection == Selection(1, 6)

    run_pending(loop)
    assert control.calls == [("select", 1, 6), ("focus",)]

    editor.on_selection_change(13, 13)
    assert editor.selection == Selection(13, 13)
