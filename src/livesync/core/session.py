import logging
from dataclasses import dataclass
from enum import Enum

from ..preview.live_server import StaticFileServer
from ..preview.websocket_server import BroadcastHub

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Lifecycle of the preview server"""
    STOPPED = "stopped"
    LIVE_EDITING = "running_editing"
    PAUSED = "running_paused"


STATUS_LABELS = {
    SessionState.STOPPED: "Go Live",
    SessionState.LIVE_EDITING: "Pause Live Edit",
    SessionState.PAUSED: "Resume Live Edit",
}


@dataclass
class Session:
    root_directory: str
    port: int
    server: StaticFileServer
    hub: BroadcastHub


class SessionStateMachine:
    """Allowed transitions between the three session states.

    Each transition returns ``True`` when it was taken; a transition that is
    not legal from the current state leaves it untouched and returns
    ``False``. Stopped can only be left through ``mark_live``.
    """

    def __init__(self):
        self.state = SessionState.STOPPED

    @property
    def may_broadcast(self) -> bool:
        return self.state is SessionState.LIVE_EDITING

    @property
    def label(self) -> str:
        return STATUS_LABELS[self.state]

    def _move(self, expected: SessionState, target: SessionState) -> bool:
        if self.state is not expected:
            return False
        logger.debug(f"Session {self.state.value} -> {target.value}")
        self.state = target
        return True

    def mark_live(self) -> bool:
        return self._move(SessionState.STOPPED, SessionState.LIVE_EDITING)

    def pause(self) -> bool:
        return self._move(SessionState.LIVE_EDITING, SessionState.PAUSED)

    def resume(self) -> bool:
        return self._move(SessionState.PAUSED, SessionState.LIVE_EDITING)

    def mark_stopped(self) -> bool:
        if self.state is SessionState.STOPPED:
            return False
        self.state = SessionState.STOPPED
        return True
