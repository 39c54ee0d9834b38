from __future__ import annotations


class BoardError(RuntimeError):
  def __init__(self, message: str) -> None:
    super().__init__(message)
    self.message = message


class NotFound(BoardError):
  """A referenced column or task does not exist."""


class ValidationError(BoardError):
  """Input rejected before any store access."""


class StoreUnavailable(BoardError):
  """The store (or the API in front of it) failed; re-fetch the board before trusting local state."""


class GestureStateError(BoardError):
  pass
