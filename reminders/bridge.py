"""Routes notification action taps to the application layer"""

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import ValidationError

from reminders.models import NotificationAction

logger = logging.getLogger(__name__)

ActionListener = Callable[[NotificationAction], Any]


class ActionBridge:
  """Delivers actions to the attached listener, or holds one until attached.

  The pending slot holds a single action: a second tap before a listener is
  attached overwrites the first.
  """

  def __init__(self):
    self._lock = threading.Lock()
    self._listener: Optional[ActionListener] = None
    self._pending: Optional[NotificationAction] = None

  @property
  def pending(self) -> Optional[NotificationAction]:
    return self._pending

  def attach(self, listener: ActionListener) -> None:
    """Attach the application-layer listener and flush the pending action."""
    with self._lock:
      self._listener = listener
      pending, self._pending = self._pending, None
    if pending is not None:
      logger.info(f"Delivering buffered action {pending.action_id}")
      listener(pending)

  def detach(self, listener: Optional[ActionListener] = None) -> None:
    """Detach the listener; with `listener` given, only if it is the current one."""
    with self._lock:
      if listener is None or self._listener is listener:
        self._listener = None

  def deliver(self, action: NotificationAction) -> bool:
    """Hand an action upward.

    Returns:
      True if delivered directly, False if buffered
    """
    with self._lock:
      listener = self._listener
      if listener is None:
        if self._pending is not None:
          logger.warning(
            f"Overwriting buffered action {self._pending.action_id} with {action.action_id}"
          )
        self._pending = action
        return False
    listener(action)
    return True


class PendingActionFile:
  """Single-slot action buffer on disk, for taps made while no backend runs.

  A fire worker that can't reach the backend saves the action here; the
  backend moves it into its ActionBridge on startup. Last write wins.
  """

  def __init__(self, path: Path):
    self.path = path

  def save(self, action: NotificationAction) -> None:
    self.path.parent.mkdir(parents=True, exist_ok=True)
    if self.path.exists():
      logger.warning(f"Overwriting stored action with {action.action_id}")
    self.path.write_text(action.model_dump_json())
    logger.info(f"Stored action {action.action_id} for the next backend start")

  def take(self) -> Optional[NotificationAction]:
    """Read and remove the stored action, if any."""
    if not self.path.exists():
      return None
    raw = self.path.read_text()
    self.path.unlink(missing_ok=True)
    try:
      return NotificationAction.model_validate_json(raw)
    except ValidationError:
      logger.exception(f"Discarding unreadable stored action in {self.path}")
      return None
