"""
Sessions, the datafeed sink and file replay.

See Also
--------
sigscope.context : Creates and loads sessions
"""

from .datafeed import DatafeedSink, SinkState
from .replay import replay_file
from .session import DatafeedCallback, Session, SessionState

__all__ = [
    "DatafeedCallback",
    "DatafeedSink",
    "Session",
    "SessionState",
    "SinkState",
    "replay_file",
]
