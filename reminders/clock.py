"""Wall clock used for daily fire-time computation"""

from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo


class Clock:
  """Local wall clock.

  With `timezone` unset, `now()` is a naive local datetime and the system zone
  rules apply when it is converted to epoch millis.
  """

  def __init__(self, timezone: Optional[str] = None):
    self.tz = ZoneInfo(timezone) if timezone else None

  def now(self) -> datetime:
    return datetime.now(self.tz)
