"""
Auto-play: let the two model slots play each other.

- ScheduledTask runs a step function on a daemon thread with a fixed delay
  between calls. Its threading.Event is the cancellation token: cancelling wakes
  the pending delay immediately and the task exits.
- AutoPlayer is the state machine on top (IDLE, AWAITING_MOVE, APPLYING,
  STOPPED_ON_ERROR) with a bounded retry counter for "no move" replies.

An in-flight model request is never aborted; its result is dropped if the task
was cancelled, or the position changed, while it was outstanding.
"""
from __future__ import annotations

import enum
import logging
import threading
from typing import TYPE_CHECKING, Callable, Optional

from .errors import LLMServiceError

if TYPE_CHECKING:  # pragma: no cover
    from .session import PlaySession

log = logging.getLogger("autoplay")

StepFn = Callable[[threading.Event], bool]


class AutoPlayState(str, enum.Enum):
    IDLE = "idle"
    AWAITING_MOVE = "awaiting_move"
    APPLYING = "applying"
    STOPPED_ON_ERROR = "stopped_on_error"


class ScheduledTask:
    """Call step(token) every delay_s seconds until it returns False or the task is cancelled."""

    def __init__(self, step: StepFn, delay_s: float, name: str = "scheduled-task"):
        self.step = step
        self.delay_s = delay_s
        self.cancel_event = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def join(self, timeout: Optional[float] = None) -> None:
        self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def _run(self) -> None:
        while not self.cancel_event.wait(self.delay_s):
            try:
                if not self.step(self.cancel_event):
                    break
            except Exception:
                log.exception("Scheduled step failed; stopping %s", self._thread.name)
                break
        # a finished task reads as cancelled
        self.cancel_event.set()


class AutoPlayer:
    """Alternates move requests between the white and black model slots of a session."""

    def __init__(self, session: "PlaySession", delay_s: float = 0.2, max_retries: int = 3):
        self.session = session
        self.delay_s = delay_s
        self.max_retries = max_retries
        self.state = AutoPlayState.IDLE
        self.retries = 0
        self._task: Optional[ScheduledTask] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.cancelled

    def start(self) -> None:
        with self.session.lock:
            if self.running:
                return
            self.retries = 0
            self.state = AutoPlayState.AWAITING_MOVE
            self._task = ScheduledTask(self.step, self.delay_s, name=f"autoplay-{self.session.id}")
            self._task.start()
            log.info("Auto-play started for session %s", self.session.id)

    def stop(self) -> None:
        with self.session.lock:
            if self._task is None:
                return
            self._task.cancel()
            self._task = None
            self.retries = 0
            self.state = AutoPlayState.IDLE
            log.info("Auto-play stopped for session %s", self.session.id)

    def _halt(self, state: AutoPlayState, message: str, kind: str) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self.retries = 0
        self.state = state
        self.session.set_status(message, kind)

    def step(self, token: Optional[threading.Event] = None) -> bool:
        """Run one cycle. Returns True to schedule another one."""
        try:
            return self._cycle(token)
        except Exception as exc:
            log.exception("Auto-play cycle failed for session %s", self.session.id)
            with self.session.lock:
                if token is None or not token.is_set():
                    self._halt(AutoPlayState.STOPPED_ON_ERROR, f"Auto-play failed: {exc}. AutoPlay stopped.", "error")
            return False

    def _cycle(self, token: Optional[threading.Event]) -> bool:
        session = self.session
        with session.lock:
            if token is not None and token.is_set():
                return False
            if session.game.is_terminal():
                self._halt(AutoPlayState.IDLE, f"Game over ({session.game.result()}). AutoPlay stopped.", "info")
                return False
            turn = session.begin_turn()
            self.state = AutoPlayState.AWAITING_MOVE

        try:
            move = session.request_move(turn)
        except LLMServiceError as exc:
            with session.lock:
                if token is not None and token.is_set():
                    return False
                self._halt(AutoPlayState.STOPPED_ON_ERROR, f"Model request failed: {exc}. AutoPlay stopped.", "error")
            return False

        with session.lock:
            if token is not None and token.is_set():
                log.debug("Discarding reply from %s: auto-play was stopped", turn.model)
                return False
            if move is None:
                self.retries += 1
                if self.retries >= self.max_retries:
                    self._halt(
                        AutoPlayState.STOPPED_ON_ERROR,
                        f"No/invalid move found by model after {self.max_retries} retries. AutoPlay stopped.",
                        "no_move",
                    )
                    return False
                log.info("No move from %s; retry %d/%d", turn.model, self.retries, self.max_retries)
                return True
            self.state = AutoPlayState.APPLYING
            san = session.commit_move(turn, move)
            self.state = AutoPlayState.AWAITING_MOVE
            if san is None:
                # position changed under us; ask again for the new one
                return True
            self.retries = 0
            session.set_status(f"Model suggests move: {san}.")
            return True
