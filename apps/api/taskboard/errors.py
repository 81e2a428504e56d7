from __future__ import annotations

from fastapi import status


class TaskboardError(Exception):
  """Base for every failure the core reports to callers.

  ``code`` is the stable kind name sent to clients; ``status_code`` is the
  HTTP status the API layer maps it to.
  """

  code = "internal"
  status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

  def __init__(self, message: str) -> None:
    super().__init__(message)
    self.message = message


class ValidationError(TaskboardError):
  code = "validation_error"
  status_code = status.HTTP_400_BAD_REQUEST


class NotFound(TaskboardError):
  code = "not_found"
  status_code = status.HTTP_404_NOT_FOUND


class Forbidden(TaskboardError):
  code = "forbidden"
  status_code = status.HTTP_403_FORBIDDEN


class InvalidMembership(TaskboardError):
  code = "invalid_membership"
  status_code = status.HTTP_400_BAD_REQUEST


class NoFieldsToUpdate(TaskboardError):
  code = "no_fields_to_update"
  status_code = status.HTTP_400_BAD_REQUEST

  def __init__(self, message: str = "No valid fields to update") -> None:
    super().__init__(message)


class Conflict(TaskboardError):
  code = "conflict"
  status_code = status.HTTP_409_CONFLICT


class Internal(TaskboardError):
  code = "internal"
  status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
