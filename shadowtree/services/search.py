from typing import List, Iterator
from ..models.tree import Node, SearchState
from .errors import PatternError
import logging
import re


def iter_nodes(node: Node) -> Iterator[Node]:
  """Walk a subtree in pre-order, parent before children, children in list order."""
  stack = [node]
  while stack:
    current = stack.pop()
    yield current
    stack.extend(reversed(current.children))


def compile_pattern(pattern: str) -> re.Pattern:
  """Compile a case-insensitive name pattern.

  Args:
      pattern (str): The regular expression.

  Raises:
      PatternError: If the expression is malformed.

  Returns:
      re.Pattern: The compiled expression.
  """
  try:
    return re.compile(pattern, re.IGNORECASE)
  except re.error as e:
    raise PatternError(f"Invalid search pattern '{pattern}': {e}") from e


def search_tree(root: Node, pattern: str) -> SearchState:
  """Match a pattern against the name of every node of the tree.

  Args:
      root (Node): The tree root, None for an empty tree.
      pattern (str): A regular expression, matched anywhere in the name, ignoring case.

  Raises:
      PatternError: If the expression is malformed.

  Returns:
      SearchState: The pattern and the matching nodes in traversal order.
  """
  regex = compile_pattern(pattern)
  results: List[Node] = []
  if root is not None:
    results = [node for node in iter_nodes(root) if regex.search(node.name)]
  logging.info(f"Search '{pattern}' matched {len(results)} node(s)")
  return SearchState(pattern=pattern, results=results)
