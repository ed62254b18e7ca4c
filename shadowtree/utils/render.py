from typing import List, Optional
from ..models.tree import Node, SearchState
from .files import format_size, format_time

DIRECTORY_MARK = "\U0001F4C1 "
FILE_MARK = "\U0001F4C4 "


def _mark(node: Node) -> str:
  return DIRECTORY_MARK if node.is_dir else FILE_MARK


def render_tree(node: Optional[Node], show_details: bool = False) -> List[str]:
  """Make the text lines showing a tree, two spaces of indent per level.

  Args:
      node (Node): The root of the tree to show, None for an empty tree.
      show_details (bool, optional): Append size and modification time. Defaults to False.

  Returns:
      List[str]: The lines, in traversal order.
  """
  if node is None:
    return ["Tree is empty."]
  lines: List[str] = []
  _render_node(node, 0, show_details, lines)
  return lines


def _render_node(node: Node, depth: int, show_details: bool, lines: List[str]):
  line = f"{'  ' * depth}{_mark(node)}{node.name}"
  if show_details:
    line += f"  {format_size(node.size)}  {format_time(node.modified_at)}"
  lines.append(line)
  for child in node.children:
    _render_node(child, depth + 1, show_details, lines)


def render_search_results(state: Optional[SearchState]) -> List[str]:
  """Make the text lines listing the results of a search."""
  if state is None:
    return ["No search performed."]
  if not state.results:
    return [f"No results found for: {state.pattern}"]
  lines = [f"Search results ({len(state.results)}) for: {state.pattern}"]
  for node in state.results:
    lines.append(f"  {_mark(node)}{node.name}  {node.path}")
  return lines
