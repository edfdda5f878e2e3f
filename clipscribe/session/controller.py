"""Interactive session state for one loaded media file.

The controller owns a single :class:`SessionState` and mutates it only through
named transitions. Observers register with :meth:`SessionController.subscribe`
and receive a snapshot after every transition. Sub-clip previews are always
recomputed from the immutable source buffer: the selection is sliced afresh,
the speed edits and trim are applied as one transform list, and the encoded
WAV replaces the single live preview file.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
import math
import pathlib
import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

from clipscribe.audio.buffer import SampleBuffer
from clipscribe.audio.transforms import (
    SpeedTransform,
    Transform,
    TrimTransform,
    apply_transforms,
)
from clipscribe.audio.wav import encode_wav
from clipscribe.errors import ValidationError
from clipscribe.session.preview import PreviewSlot
from clipscribe.timestamps.models import Caption, SpeedEdit
from clipscribe.transcription.progress import ProgressUpdate
from clipscribe.utils.cancel import CancelToken

logger = logging.getLogger(__name__)

__all__ = [
    "WorkflowState",
    "SessionState",
    "SessionController",
    "build_transforms",
    "render_selection",
]

FULL_TRIM: tuple[float, float] = (0.0, 100.0)


class WorkflowState(str, enum.Enum):  # noqa: UP042
    """Session workflow states.

    Attributes:
        IDLE: No file loaded.
        PROCESSING: Transcription in progress.
        READY: Timeline available for selection and editing.
        ERROR: The last run failed.
        CANCELLED: The last run was cancelled by the user.
    """

    IDLE = "idle"
    PROCESSING = "processing"
    READY = "ready"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass
class SessionState:
    """Observable state of one session.

    Attributes:
        workflow_state: Current workflow state.
        status: Latest human-readable status line.
        progress: Latest progress tick, ``None`` before the first one.
        file_name: Name of the loaded file.
        file_hash: Content hash of the loaded file.
        timeline: Global caption timeline.
        selection: Inclusive ``(start, end)`` caption index pair.
        selection_mode: ``True`` between the first and second caption click.
        speed_edits: Speed edits inside the selection, sorted by start index.
        trim: ``(start_pct, end_pct)`` of the selection's pre-speed duration.
        preview_path: Live preview WAV file.
        error_message: Message of the last failure.

    Examples:
        >>> state = SessionState()
        >>> state.workflow_state
        <WorkflowState.IDLE: 'idle'>
    """

    workflow_state: WorkflowState = WorkflowState.IDLE
    status: str = ""
    progress: ProgressUpdate | None = None
    file_name: str | None = None
    file_hash: str | None = None
    timeline: list[Caption] = field(default_factory=list)
    selection: tuple[int, int] | None = None
    selection_mode: bool = False
    speed_edits: list[SpeedEdit] = field(default_factory=list)
    trim: tuple[float, float] = FULL_TRIM
    preview_path: pathlib.Path | None = None
    error_message: str | None = None

    def snapshot(self) -> SessionState:
        """Return a copy whose lists can be read without holding the lock."""
        return dataclasses.replace(
            self, timeline=list(self.timeline), speed_edits=list(self.speed_edits)
        )


def _selection_bounds_ms(
    timeline: list[Caption], selection: tuple[int, int]
) -> tuple[float, float]:
    start, end = selection
    return timeline[start].start_ms, timeline[end].end_ms


def build_transforms(
    timeline: list[Caption],
    selection: tuple[int, int],
    speed_edits: list[SpeedEdit],
    trim: tuple[float, float],
) -> list[Transform]:
    """Express speed edits and trim as transforms over the selected clip.

    Speed windows are measured from the start of the selection; the trim
    comes last.
    """
    sel_start_ms, _ = _selection_bounds_ms(timeline, selection)
    transforms: list[Transform] = [
        SpeedTransform(
            start_sec=(timeline[edit.start_word_idx].start_ms - sel_start_ms) / 1000.0,
            end_sec=(timeline[edit.end_word_idx].end_ms - sel_start_ms) / 1000.0,
            rate=edit.rate,
        )
        for edit in sorted(speed_edits, key=lambda e: e.start_word_idx)
    ]
    transforms.append(TrimTransform(start_pct=trim[0], end_pct=trim[1]))
    return transforms


def render_selection(
    source: SampleBuffer,
    timeline: list[Caption],
    selection: tuple[int, int],
    transforms: list[Transform],
) -> SampleBuffer:
    """Slice the selection from *source* and apply *transforms* to it."""
    start_ms, end_ms = _selection_bounds_ms(timeline, selection)
    clip = source.slice_seconds(start_ms / 1000.0, end_ms / 1000.0)
    return apply_transforms(clip, transforms)


class SessionController:
    """Owns the session state and the single live preview file.

    Attributes:
        cancel_token: Token handed to the orchestrator for the current run.

    Examples:
        >>> controller = SessionController()
        >>> unsubscribe = controller.subscribe(print)
        >>> controller.load_source(buffer, file_name="talk.wav", file_hash=h)
        >>> controller.replace_timeline(entry.captions)
        >>> controller.click_caption(3)
        >>> controller.click_caption(12)
        >>> controller.state.preview_path
        PosixPath('/tmp/clipscribe_preview_....wav')
    """

    def __init__(self, preview: PreviewSlot | None = None) -> None:
        self._lock = threading.RLock()
        self._state = SessionState()
        self._source: SampleBuffer | None = None
        self._preview = preview or PreviewSlot()
        self._subscribers: list[Callable[[SessionState], None]] = []
        self.cancel_token = CancelToken()

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------
    @property
    def state(self) -> SessionState:
        """Snapshot of the current state."""
        with self._lock:
            return self._state.snapshot()

    @property
    def source(self) -> SampleBuffer | None:
        return self._source

    def subscribe(self, callback: Callable[[SessionState], None]) -> Callable[[], None]:
        """Register *callback* for state snapshots.

        Returns:
            Callable[[], None]: Removes the subscription when called.
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        with self._lock:
            snapshot = self._state.snapshot()
            subscribers = list(self._subscribers)
        for callback in subscribers:
            callback(snapshot)

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------
    def load_source(
        self,
        source: SampleBuffer,
        *,
        file_name: str | None = None,
        file_hash: str | None = None,
    ) -> None:
        """Install a freshly decoded source and start a new run."""
        with self._lock:
            self._preview.release()
            self._source = source
            self.cancel_token.reset()
            self._state = SessionState(
                workflow_state=WorkflowState.PROCESSING,
                file_name=file_name,
                file_hash=file_hash,
            )
        logger.info(f"Loaded {file_name or 'source'}: {source.duration_sec:.2f}s")
        self._notify()

    def set_status(self, text: str) -> None:
        with self._lock:
            if self._state.workflow_state is WorkflowState.CANCELLED:
                return
            self._state.status = text
        self._notify()

    def apply_progress(self, update: ProgressUpdate) -> None:
        """Apply one progress tick atomically."""
        with self._lock:
            if self._state.workflow_state is not WorkflowState.PROCESSING:
                return
            self._state.progress = update
        self._notify()

    def replace_timeline(self, captions: list[Caption]) -> None:
        """Install a finished or cached timeline, discarding any selection."""
        with self._lock:
            self._preview.release()
            self._state.timeline = list(captions)
            self._reset_selection()
            self._state.workflow_state = WorkflowState.READY
            self._state.error_message = None
        self._notify()

    def fail(self, message: str) -> None:
        with self._lock:
            self._state.workflow_state = WorkflowState.ERROR
            self._state.error_message = message
            self._state.status = f"Error: {message}"
        logger.error(f"Session failed: {message}")
        self._notify()

    def cancel(self) -> None:
        """Request cancellation of the running transcription."""
        with self._lock:
            self.cancel_token.cancel()
            if self._state.workflow_state is WorkflowState.PROCESSING:
                self._state.workflow_state = WorkflowState.CANCELLED
                self._state.status = "Cancelled"
        self._notify()

    # ------------------------------------------------------------------
    # Selection and editing
    # ------------------------------------------------------------------
    def _require_index(self, index: int) -> None:
        n = len(self._state.timeline)
        if not 0 <= index < n:
            raise ValidationError(f"Caption index {index} outside timeline of {n} captions")

    def _require_ready(self) -> SampleBuffer:
        if self._source is None or self._state.workflow_state is not WorkflowState.READY:
            raise ValidationError("No transcript is ready for selection")
        return self._source

    def _reset_selection(self) -> None:
        self._state.selection = None
        self._state.selection_mode = False
        self._state.speed_edits = []
        self._state.trim = FULL_TRIM
        self._state.preview_path = None

    def click_caption(self, index: int) -> None:
        """Handle a click on caption *index*.

        The first click anchors a new selection; the second completes it
        (order-normalized) and renders the preview.
        """
        with self._lock:
            self._require_ready()
            self._require_index(index)
            if not self._state.selection_mode:
                self._preview.release()
                self._reset_selection()
                self._state.selection = (index, index)
                self._state.selection_mode = True
            else:
                anchor = self._state.selection[0] if self._state.selection else index
                self._commit_selection(min(anchor, index), max(anchor, index))
        self._notify()

    def select_range(self, start: int, end: int) -> None:
        """Select the inclusive caption range ``[start, end]`` directly."""
        with self._lock:
            self._require_ready()
            self._require_index(start)
            self._require_index(end)
            self._commit_selection(min(start, end), max(start, end))
        self._notify()

    def _commit_selection(self, start: int, end: int) -> None:
        selection = (start, end)
        path = self._render(selection, [], FULL_TRIM)
        self._state.selection = selection
        self._state.selection_mode = False
        self._state.speed_edits = []
        self._state.trim = FULL_TRIM
        self._state.preview_path = path

    def add_speed_edit(self, start_word_idx: int, end_word_idx: int, rate: float) -> SpeedEdit:
        """Add a speed change over an inclusive caption range.

        Raises:
            ValidationError: Without a selection, for a range outside it, a
                non-positive rate, or an overlap with an existing edit. The
                state is left unchanged.
        """
        with self._lock:
            self._require_ready()
            selection = self._state.selection
            if selection is None or self._state.selection_mode:
                raise ValidationError("Select a caption range before adding a speed edit")
            lo, hi = min(start_word_idx, end_word_idx), max(start_word_idx, end_word_idx)
            if lo < selection[0] or hi > selection[1]:
                raise ValidationError(
                    f"Speed edit [{lo}, {hi}] lies outside selection "
                    f"[{selection[0]}, {selection[1]}]"
                )
            if not math.isfinite(rate) or rate <= 0:
                raise ValidationError(f"Speed rate must be > 0, got {rate}")
            for existing in self._state.speed_edits:
                if existing.overlaps(lo, hi):
                    raise ValidationError(
                        f"Speed edit [{lo}, {hi}] overlaps existing edit "
                        f"[{existing.start_word_idx}, {existing.end_word_idx}]"
                    )

            edit = SpeedEdit(id=uuid.uuid4().hex, start_word_idx=lo, end_word_idx=hi, rate=rate)
            edits = sorted([*self._state.speed_edits, edit], key=lambda e: e.start_word_idx)
            path = self._render(selection, edits, self._state.trim)
            self._state.speed_edits = edits
            self._state.preview_path = path
        logger.debug(f"Added speed edit {edit.id}: [{lo}, {hi}] x{rate}")
        self._notify()
        return edit

    def remove_speed_edit(self, edit_id: str) -> None:
        """Remove the speed edit with *edit_id* and re-render the preview.

        Raises:
            ValidationError: Without a selection or for an unknown *edit_id*.
        """
        with self._lock:
            self._require_ready()
            selection = self._state.selection
            if selection is None:
                raise ValidationError("Select a caption range before removing a speed edit")
            edits = [e for e in self._state.speed_edits if e.id != edit_id]
            if len(edits) == len(self._state.speed_edits):
                raise ValidationError(f"Unknown speed edit: {edit_id}")
            path = self._render(selection, edits, self._state.trim)
            self._state.speed_edits = edits
            self._state.preview_path = path
        self._notify()

    def set_trim(self, start_pct: float, end_pct: float) -> None:
        """Replace the trim with ``[start_pct, end_pct]`` of the selection.

        Raises:
            ValidationError: Without a selection or for bounds outside
                ``[0, 100]``.
        """
        with self._lock:
            self._require_ready()
            selection = self._state.selection
            if selection is None or self._state.selection_mode:
                raise ValidationError("Select a caption range before trimming")
            for pct in (start_pct, end_pct):
                if not math.isfinite(pct) or pct < 0 or pct > 100:
                    raise ValidationError(f"Trim bounds must lie within [0, 100], got {pct}")
            trim = (min(start_pct, end_pct), max(start_pct, end_pct))
            path = self._render(selection, self._state.speed_edits, trim)
            self._state.trim = trim
            self._state.preview_path = path
        self._notify()

    def clear_selection(self) -> None:
        """Drop the selection together with its edits, trim and preview."""
        with self._lock:
            self._preview.release()
            self._reset_selection()
        self._notify()

    def transforms(self) -> list[Transform]:
        """Transform list for the current selection, empty without one."""
        with self._lock:
            selection = self._state.selection
            if selection is None:
                return []
            return build_transforms(
                self._state.timeline, selection, self._state.speed_edits, self._state.trim
            )

    def recompute(self) -> pathlib.Path | None:
        """Re-render the preview of the current selection from the source."""
        with self._lock:
            selection = self._state.selection
            if selection is None or self._source is None:
                return None
            path = self._render(selection, self._state.speed_edits, self._state.trim)
            self._state.preview_path = path
        self._notify()
        return path

    def _render(
        self,
        selection: tuple[int, int],
        edits: list[SpeedEdit],
        trim: tuple[float, float],
    ) -> pathlib.Path | None:
        """Render and install a preview; raises before touching the slot."""
        if self._source is None:
            raise ValidationError("No source loaded")
        timeline = self._state.timeline
        clip = render_selection(
            self._source, timeline, selection, build_transforms(timeline, selection, edits, trim)
        )
        if clip.num_frames == 0:
            self._preview.release()
            return None
        return self._preview.replace(encode_wav(clip))

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------
    def close(self) -> None:
        """Release the preview and return to the idle state."""
        with self._lock:
            self.cancel_token.cancel()
            self._preview.release()
            self._source = None
            self._state = SessionState()
        self._notify()

    def __enter__(self) -> SessionController:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
