"""Study log: flat-text block codec, append-only store, session saves."""

from iliadtutor.studylog.codec import (
    DISPLAY_LIMIT,
    DisplayBlock,
    StudyLogBlock,
    WordRow,
    append_log,
    decode_log,
    encode_block,
    encode_session,
    parse_log,
    render_html,
    seconds_per_line,
)
from iliadtutor.studylog.store import StudyLogStore

__all__ = [
    "DISPLAY_LIMIT",
    "DisplayBlock",
    "StudyLogBlock",
    "WordRow",
    "append_log",
    "decode_log",
    "encode_block",
    "encode_session",
    "parse_log",
    "render_html",
    "seconds_per_line",
    "StudyLogStore",
]
