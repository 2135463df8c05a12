"""
ScorePad - Local Scorekeeping Engine

Keeps score for tabletop games on a single device:
- Session lifecycle (start, rounds, end, reopen, duplicate, pin)
- Local storage with time-to-live retention (pinned sessions are kept)
- Per-player totals
- Read-only export snapshots for document rendering
"""

__version__ = "0.1.0"
