"""
Errors raised by the alarms backend and their JSON shape
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

ErrorSource = Literal[
  "validation",  # Bad command arguments
  "alarms",  # Reminder runtime / host alarm service
  "notifications",  # Notification posting and action routing
  "http",  # Raised by FastAPI/Starlette
  "unknown",
]

_STATUS_BY_SOURCE: dict[str, int] = {
  "validation": 400,
  "alarms": 503,
}


def get_status_code(source: ErrorSource) -> int:
  """HTTP status for an error source; 500 unless listed"""
  return _STATUS_BY_SOURCE.get(source, 500)


class ErrorResponse(BaseModel):
  """Body of every error response"""

  description: str = Field(..., description="Human-readable error message")
  name: str = Field(..., description="Stable error identifier, e.g. ALARMS_NOT_READY")
  source: ErrorSource = Field(..., description="Subsystem the error came from")
  caused_by: Optional[str] = Field(None, description="Underlying exception, if any")


class AppError(Exception):
  """
  Application error with a stable name and source.
  ErrorHandlingMiddleware turns it into an ErrorResponse.
  """

  def __init__(
    self,
    description: str,
    name: str,
    source: ErrorSource,
    caused_by: Optional[str] = None,
  ):
    self.description = description
    self.name = name
    self.source: ErrorSource = source
    self.caused_by = caused_by
    super().__init__(description)

  def to_response(self) -> ErrorResponse:
    return ErrorResponse(
      description=self.description,
      name=self.name,
      source=self.source,
      caused_by=self.caused_by,
    )
