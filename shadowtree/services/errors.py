class TreeError(Exception):
  """Base exception raised when managing the shadow tree."""
  pass


class NotFoundError(TreeError):
  """A path or node is absent, or a node reference is stale."""
  pass


class InvalidParentError(TreeError):
  """The operation needs a directory node and got something else."""
  pass


class InvalidNameError(TreeError):
  """The name is not a single, safe path component."""
  pass


class PatternError(TreeError):
  """The search pattern is not a valid regular expression."""
  pass


class PolicyViolationError(TreeError):
  """The operation is refused by policy, e.g. deleting the root."""
  pass


class TreeIOError(TreeError):
  """The underlying filesystem call failed."""

  def __init__(self, path: str, reason: str):
    super().__init__(f"{path}: {reason}")
    self.path = path
    self.reason = reason
