"""Editor-side formatting: the toggle command and a live editing surface."""

import asyncio
import os
from typing import Optional, List, Protocol

from .exceptions import ConfigurationError
from .models import FormatResult, Segment, Selection
from .utils.markdown import parse_formatted_text

DEFAULT_SELECTION_DELAY = 0.05

# Markers sent by the formatting toolbar. "```" is not in the parser table and
# renders as backtick runs; kept as the toolbar has always sent it.
FORMAT_BUTTONS = {
    "bold": "*",
    "italic": "_",
    "strike": "~",
    "mono": "```",
}


def toggle_format(text: str, selection: Selection, marker: str) -> FormatResult:
    """Wrap the selection in ``marker``, or unwrap it if already wrapped.

    The selection is normalized and clamped to the text before use, so
    reversed or out-of-range offsets never raise. ``marker`` is inserted
    verbatim; it does not have to be a marker the parser knows.

    Args:
        text: Raw markup buffer
        selection: Current selection, in either order
        marker: Marker string to toggle, e.g. ``"*"``

    Returns:
        FormatResult with the new text and the selection covering the same
        content in the new text
    """
    sel = selection.clamped(len(text))
    if not marker:
        return FormatResult(text, sel)

    start, end = sel.start, sel.end
    selected = text[start:end]
    before = text[:start]
    after = text[end:]
    size = len(marker)

    if before.endswith(marker) and after.startswith(marker):
        new_start = start - size
        return FormatResult(
            before[:-size] + selected + after[size:],
            Selection(new_start, new_start + len(selected)),
            unwrapped=True,
        )

    new_start = start + size
    return FormatResult(
        before + marker + selected + marker + after,
        Selection(new_start, new_start + len(selected)),
    )



class TextInputControl(Protocol):
    """The host's native text-input widget.

    Offsets are UTF-16 code units, as native text inputs report them.
    """

    def set_selection(self, start: int, end: int) -> None: ...

    def focus(self) -> None: ...


class SelectionScheduler:
    """Single-slot deferred selection update.

    Native text inputs drop a selection that is set in the same update as a
    text change, so the selection is re-applied on a later loop turn. Only
    the most recent request is kept: scheduling again replaces the pending
    task, and a closed scheduler never touches the control. Offsets are
    passed to the control as given.
    """

    def __init__(
        self,
        control: Optional[TextInputControl] = None,
        delay: float = DEFAULT_SELECTION_DELAY,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.control = control
        self.delay = delay
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None
        self._pending: Optional[Selection] = None
        self._closed = False

    @property
    def pending(self) -> Optional[Selection]:
        return self._pending

    @property
    def closed(self) -> bool:
        return self._closed

    def get_loop(self) -> asyncio.AbstractEventLoop:
        """Return the loop deferred updates run on.

        Raises:
            RuntimeError: If no loop was given and none is running
        """
        return self._loop or asyncio.get_running_loop()

    def schedule(self, selection: Selection) -> bool:
        """Replace any pending update with ``selection``.

        Must be called while the event loop is running unless a loop was
        passed to the constructor.

        Returns:
            False if the scheduler is closed and nothing was scheduled
        """
        if self._closed:
            return False

        loop = self.get_loop()
        self.cancel()
        self._pending = selection
        self._handle = loop.call_later(self.delay, self._apply)
        return True

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._pending = None

    def close(self) -> None:
        """Drop pending work for good, e.g. when the editor is unmounted."""
        self.cancel()
        self._closed = True
        self.control = None

    def _apply(self) -> None:
        selection = self._pending
        self._handle = None
        self._pending = None

        if self._closed or selection is None or self.control is None:
            return

        self.control.set_selection(selection.start, selection.end)
        self.control.focus()


def _selection_delay_from_env() -> float:
    value = os.getenv("WIKIMARK_SELECTION_DELAY")
    if value is None:
        return DEFAULT_SELECTION_DELAY
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(
            f"WIKIMARK_SELECTION_DELAY must be a number of seconds, got {value!r}"
        ) from None


class Editor:
    """Raw markup buffer with a selection and formatting actions.

    ``text`` and ``selection`` use code point offsets. Offsets exchanged with
    the control (``on_selection_change`` and deferred updates) are UTF-16
    code units and are converted at that boundary.
    """

    def __init__(
        self,
        text: str = "",
        control: Optional[TextInputControl] = None,
        selection_delay: Optional[float] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """Initialize the editor.

        Args:
            text: Initial buffer contents
            control: Host text-input control that receives deferred selections
            selection_delay: Seconds to wait before re-applying a selection.
                If not provided, read from WIKIMARK_SELECTION_DELAY env var
            loop: Event loop for deferred work. Defaults to the running loop

        Raises:
            ConfigurationError: If WIKIMARK_SELECTION_DELAY is not a number
        """
        if selection_delay is None:
            selection_delay = _selection_delay_from_env()

        self.text = text
        self.selection = Selection(len(text), len(text))
        self.scheduler = SelectionScheduler(control, selection_delay, loop)

    @property
    def segments(self) -> List[Segment]:
        return parse_formatted_text(self.text)

    def set_text(self, text: str) -> None:
        """Commit a user edit; a pending selection from an older edit is dropped."""
        self.scheduler.cancel()
        self.text = text
        self.selection = self.selection.clamped(len(text))

    def on_selection_change(self, start: int, end: int) -> None:
        """Record a selection reported by the control, in UTF-16 units.

        While a formatted selection is waiting to be re-applied, reports are
        the control resetting its cursor after the text change and are
        ignored; the pending selection is the latest write.
        """
        if self.scheduler.pending is not None:
            return
        self.selection = Selection.from_utf16(self.text, start, end)

    def apply_format(self, marker: str) -> FormatResult:
        """Toggle ``marker`` around the current selection.

        The new text and selection are committed immediately; the selection
        is pushed to the control on a later loop turn, along with focus.

        Raises:
            RuntimeError: If a control is attached but there is no event loop
                to defer the update on. Nothing is changed in that case.
        """
        if self.scheduler.control is not None and not self.scheduler.closed:
            self.scheduler.get_loop()

        result = toggle_format(self.text, self.selection, marker)
        self.text = result.text
        self.selection = result.selection
        if self.scheduler.control is not None:
            start, end = result.selection.to_utf16(result.text)
            self.scheduler.schedule(Selection(start, end))
        return result

    def apply_button(self, name: str) -> FormatResult:
        """Apply a toolbar button by name (bold, italic, strike, mono)."""
        return self.apply_format(FORMAT_BUTTONS[name])

    def submit(self) -> str:
        """Return the trimmed buffer and reset the editor."""
        text = self.text.strip()
        self.set_text("")
        return text

    def close(self) -> None:
        self.scheduler.close()
