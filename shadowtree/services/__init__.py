from ..models.tree import Node, NodeKind, ScanIssue, SearchState
from .errors import (
  TreeError,
  NotFoundError,
  InvalidParentError,
  InvalidNameError,
  PatternError,
  PolicyViolationError,
  TreeIOError,
)
from .tree import TreeManager, find_by_name, find_parent
from .search import iter_nodes, search_tree
