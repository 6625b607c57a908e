import enum
import logging
from dataclasses import dataclass, field

from ..config import settings
from . import context, project
from .llm_client import DispatchError, Mode

logger = logging.getLogger(__name__)


class State(enum.Enum):
    IDLE = "idle"
    ARMED = "armed"
    PENDING = "pending"
    SUGGESTED = "suggested"


@dataclass
class Suggestion:
    """The single proposed completion currently on screen."""

    text: str
    anchor: tuple
    handle: object = field(default=None, compare=False)


def missing_text(typed_before, suggestion):
    """
    Drop the part of ``suggestion`` that repeats what is already typed.

    Models often echo the start of the current line; only the remainder after
    the longest common prefix should be inserted.
    """
    common = 0
    for typed, suggested in zip(typed_before, suggestion):
        if typed != suggested:
            break
        common += 1
    return suggestion[common:]


class AutocompleteCore:
    """
    The editor-agnostic logic deciding when to ask the LLM for a completion and
    what to do with the answer. The host editor (hooking/hooking_qt.py) should call
    `on_text_changed()`, `on_cursor_moved()`, `accept()` and
    `on_native_completion_accepted()` as the user works.

    All methods must be called on the host's event-loop thread; results coming
    back from the LLM worker threads are marshalled there through the scheduler.
    """

    def __init__(self, editor, llm_client, overlay, scheduler,
                 debounce_delay=None, suppress_duration=None, auto_trigger=None):
        """
        :param editor:     The host editor (snapshot(), get_line(), set_line(),
                           set_cursor(), project_root()).
        :param llm_client: An LLMClient, or anything with dispatch(payload, mode) and
                           submit(fn, *args), both returning a Future.
        :param overlay:    The presentation adapter (render(), remove(), show_modal(), notify()).
        :param scheduler:  Anything with asyncio-style call_later() and call_soon_threadsafe().
        """
        self.editor = editor
        self.llm_client = llm_client
        self.overlay = overlay
        self.scheduler = scheduler

        self.debounce_delay = settings.DEBOUNCE_DELAY if debounce_delay is None else debounce_delay
        self.suppress_duration = settings.SUPPRESS_DURATION if suppress_duration is None else suppress_duration
        self.auto_trigger = settings.AUTO_TRIGGER if auto_trigger is None else auto_trigger

        self.state = State.IDLE
        self.suggestion = None
        self.suppressed = False

        # Bumped every time the timer is armed; older responses are ignored.
        self._generation = 0
        self._debounce_timer = None
        self._suppress_timer = None

    # ---------------------------------------------------------------------
    # Commands
    # ---------------------------------------------------------------------

    def enable_auto_trigger(self):
        self.auto_trigger = True
        logger.info("Auto-trigger enabled")

    def disable_auto_trigger(self):
        self.auto_trigger = False
        self._cancel_debounce()
        self._generation += 1
        if self.state in (State.ARMED, State.PENDING):
            self.state = State.IDLE
        logger.info("Auto-trigger disabled")

    def describe_current_file(self):
        snapshot = self.editor.snapshot()
        if snapshot is None or not snapshot.path:
            self.overlay.notify("tangerine: no file to describe", error=True)
            return None
        payload = context.extract(snapshot)
        title = "Description of " + snapshot.path
        return self._request_report(payload, Mode.DESCRIBE, title)

    def summarize_project(self):
        root = self.editor.project_root()
        if not root:
            self.overlay.notify("tangerine: no project root to summarize", error=True)
            return None
        self.overlay.notify("tangerine: scanning " + root + "...")
        # The walk can touch hundreds of files; keep it off the event loop.
        future = self.llm_client.submit(project.summarize_project, root)
        future.add_done_callback(
            lambda f: self.scheduler.call_soon_threadsafe(self._on_scan_done, root, f)
        )
        return future

    def _on_scan_done(self, root, future):
        try:
            summary = future.result()
        except OSError as e:
            self.overlay.notify(f"tangerine: could not scan {root}: {e}", error=True)
            return
        if not summary:
            self.overlay.notify("tangerine: no source files found under " + root, error=True)
            return
        payload = context.ContextPayload(
            text=summary, cursor_line=0, cursor_col=0, language_tag="project"
        )
        self._request_report(payload, Mode.SUMMARIZE_PROJECT, "Project summary of " + root)

    # ---------------------------------------------------------------------
    # Editor events
    # ---------------------------------------------------------------------

    def on_text_changed(self):
        """Any edit invalidates the suggestion; qualifying edits (re)arm the timer."""
        self._clear_suggestion()
        if self.suppressed:
            logger.debug("Edit ignored: suppression window raised")
            return
        if not self.auto_trigger:
            return
        if not context.is_eligible(self.editor.snapshot()):
            return
        self._arm()

    def on_cursor_moved(self):
        """Cursor navigation without acceptance dismisses the suggestion."""
        if self.suggestion is None:
            return
        logger.debug("Suggestion dismissed by cursor movement")
        self._clear_suggestion()

    def on_native_completion_accepted(self):
        """The host's own completion menu inserted text; don't treat it as typing."""
        self.raise_suppression()

    def accept(self):
        """
        Insert the active suggestion at its anchor.

        :return: False when there was nothing to accept, so the caller can let the
                 keystroke through to the editor's default handling.
        """
        suggestion = self.suggestion
        if suggestion is None:
            return False

        row, col = suggestion.anchor
        line = self.editor.get_line(row)
        col = min(col, len(line))
        self._clear_suggestion()
        # Raised before the edit so the insertion itself doesn't re-arm the timer.
        self.raise_suppression()
        self.editor.set_line(row, line[:col] + suggestion.text + line[col:])
        self.editor.set_cursor(row, col + len(suggestion.text))
        logger.debug("Accepted %d chars at %s", len(suggestion.text), suggestion.anchor)
        return True

    # ---------------------------------------------------------------------
    # Suppression window
    # ---------------------------------------------------------------------

    def raise_suppression(self):
        """Block timer arming for suppress_duration; always lowered by a timer."""
        if self._suppress_timer is not None:
            self._suppress_timer.cancel()
        self.suppressed = True
        self._suppress_timer = self.scheduler.call_later(
            self.suppress_duration, self._lower_suppression
        )

    def _lower_suppression(self):
        self.suppressed = False
        self._suppress_timer = None

    # ---------------------------------------------------------------------
    # Debounce and dispatch
    # ---------------------------------------------------------------------

    def _arm(self):
        self._cancel_debounce()
        self._generation += 1
        self.state = State.ARMED
        self._debounce_timer = self.scheduler.call_later(
            self.debounce_delay, self._on_debounce_elapsed, self._generation
        )

    def _cancel_debounce(self):
        if self._debounce_timer is not None:
            self._debounce_timer.cancel()
            self._debounce_timer = None

    def _on_debounce_elapsed(self, generation):
        if generation != self._generation:
            return
        self._debounce_timer = None
        snapshot = self.editor.snapshot()
        if not self.auto_trigger or not context.is_eligible(snapshot):
            self.state = State.IDLE
            return

        self.state = State.PENDING
        future = self.llm_client.dispatch(context.extract(snapshot), Mode.COMPLETE)
        future.add_done_callback(
            lambda f: self.scheduler.call_soon_threadsafe(self._on_completion_done, generation, f)
        )

    def _on_completion_done(self, generation, future):
        if generation != self._generation:
            logger.debug("Dropping stale completion (generation %d, latest %d)",
                         generation, self._generation)
            return
        self.state = State.IDLE
        try:
            text = future.result()
        except DispatchError as e:
            # Inline completion never interrupts typing with errors.
            logger.debug("Completion failed: %s", e)
            return
        if not text:
            return

        snapshot = self.editor.snapshot()
        if snapshot is None:
            return
        # Rendered at the cursor as it is now, not where the request was issued.
        typed_before = snapshot.line(snapshot.cursor_line)[:snapshot.cursor_col]
        text = missing_text(typed_before, text)
        if not text:
            return
        self._show(Suggestion(text=text, anchor=(snapshot.cursor_line, snapshot.cursor_col)))

    # ---------------------------------------------------------------------
    # On-demand reports (describe / summarize)
    # ---------------------------------------------------------------------

    def _request_report(self, payload, mode, title):
        self.overlay.notify("tangerine: waiting for " + mode.value.replace("_", " ") + "...")
        future = self.llm_client.dispatch(payload, mode)
        future.add_done_callback(
            lambda f: self.scheduler.call_soon_threadsafe(self._on_report_done, mode, title, f)
        )
        return future

    def _on_report_done(self, mode, title, future):
        try:
            text = future.result()
        except DispatchError as e:
            self.overlay.notify(f"tangerine: {mode.value.replace('_', ' ')} failed: {e}", error=True)
            return
        if not text:
            self.overlay.notify("tangerine: the model returned an empty response")
            return
        self.overlay.show_modal(title, text)

    # ---------------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------------

    def _show(self, suggestion):
        self._clear_suggestion()
        suggestion.handle = self.overlay.render(suggestion.anchor, suggestion.text)
        self.suggestion = suggestion
        self.state = State.SUGGESTED

    def _clear_suggestion(self):
        if self.suggestion is None:
            return
        self.overlay.remove(self.suggestion.handle)
        self.suggestion = None
        if self.state is State.SUGGESTED:
            self.state = State.IDLE
