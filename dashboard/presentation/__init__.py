"""
Presentation Layer

View models handed to the renderer. Pure data, no I/O.
"""

from .viewmodels import (
    DiffLineViewModel, TimelineRowViewModel, OrphanCardViewModel,
    FlowCardViewModel, TimelineView,
    build_row, build_orphan, build_flow_card, build_timeline_view, render_json,
)

__all__ = [
    'DiffLineViewModel', 'TimelineRowViewModel', 'OrphanCardViewModel',
    'FlowCardViewModel', 'TimelineView',
    'build_row', 'build_orphan', 'build_flow_card', 'build_timeline_view',
    'render_json',
]
