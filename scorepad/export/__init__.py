"""
Export Module - Snapshots of sessions and their PDF rendering.

The core hands renderers immutable snapshots; the renderer decides layout.
"""

from .snapshot import (
    ExportSnapshot,
    PlayerLine,
    RoundLine,
    build_snapshot,
    build_export,
    export_filename,
)
from .pdf import render_html, generate_export_pdf

__all__ = [
    "ExportSnapshot",
    "PlayerLine",
    "RoundLine",
    "build_snapshot",
    "build_export",
    "export_filename",
    "render_html",
    "generate_export_pdf",
]
