"""Interactive sub-clip session: state controller and preview slot."""

from .controller import (
    SessionController,
    SessionState,
    WorkflowState,
    build_transforms,
    render_selection,
)
from .preview import PreviewSlot

__all__ = [
    "SessionController",
    "SessionState",
    "WorkflowState",
    "PreviewSlot",
    "build_transforms",
    "render_selection",
]
