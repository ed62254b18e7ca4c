from typing import Callable, Dict, List, Optional, Set, Tuple
from ..models.tree import Node, NodeKind, ScanIssue, SearchState
from ..utils.files import NodeBuilder, sanitize_name
from .errors import (
  InvalidNameError,
  InvalidParentError,
  NotFoundError,
  PatternError,
  PolicyViolationError,
  TreeIOError,
)
from .search import iter_nodes, search_tree
import logging
import os
import shutil


def find_by_name(tree: Node, name: str) -> Optional[Node]:
  """Find the first node with the given name, depth-first.

  Matching is exact and case-sensitive. When several nodes share the name,
  only the first one met in pre-order can be reached this way, use
  TreeManager.resolve or a search to address the others.

  Args:
      tree (Node): The root of the tree to look into.
      name (str): The node name.

  Returns:
      Optional[Node]: The first matching node, None if there is none.
  """
  if tree is None:
    return None
  return next((node for node in iter_nodes(tree) if node.name == name), None)


def find_parent(tree: Node, target: Node) -> Optional[Node]:
  """Find the directory node whose children hold the target node.

  Args:
      tree (Node): The root of the tree to look into.
      target (Node): The node, compared by identity.

  Returns:
      Optional[Node]: The parent node, None for the root or a node outside the tree.
  """
  if tree is None:
    return None
  for node in iter_nodes(tree):
    if any(child is target for child in node.children):
      return node
  return None


class TreeManager:
  """
  This service keeps an in-memory tree in sync with a directory of the local
  file system. Each structural operation acts on disk first, then updates
  the tree; a failure on disk leaves the tree unchanged.
  """

  def __init__(self, base_path: str = ".", follow_symlinks: bool = False, max_depth: int = 64,
               progress_interval: int = 100, progress: Callable[[int], None] = None):
    """Initialize the tree manager, the tree is built by build() or refresh().

    Args:
        base_path (str): The directory to mirror. Defaults to current directory.
        follow_symlinks (bool, optional): Descend into symbolic links to directories. Defaults to False.
        max_depth (int, optional): Deepest directory level scanned. Defaults to 64.
        progress_interval (int, optional): Number of entries between progress reports. Defaults to 100.
        progress (Callable[[int], None], optional): Called with the number of scanned entries. Defaults to None.
    """
    self.base_path = os.fspath(base_path)
    self.follow_symlinks = follow_symlinks
    self.max_depth = max_depth
    self.progress_interval = progress_interval
    self.progress = progress
    self.root: Optional[Node] = None
    self.last_search: Optional[SearchState] = None
    self.issues: List[ScanIssue] = []
    self._nodes: Dict[str, Node] = {}
    self._parents: Dict[str, Optional[Node]] = {}

  @classmethod
  def from_settings(cls, settings, progress: Callable[[int], None] = None):
    """Make a tree manager from the application settings.

    Args:
        settings (TreeSettings): The settings.
        progress (Callable[[int], None], optional): The scan progress callback. Defaults to None.

    Returns:
        TreeManager: The tree manager, not built yet.
    """
    return cls(base_path=settings.base_path,
               follow_symlinks=settings.follow_symlinks,
               max_depth=settings.max_depth,
               progress_interval=settings.progress_interval,
               progress=progress)

  @property
  def is_built(self) -> bool:
    return self.root is not None

  #
  # Build and lookup
  #

  def build(self, path: str = None) -> Node:
    """Scan a path recursively and make it the current tree.

    Entries that cannot be read while scanning are skipped and recorded in
    the issues list, they do not abort the scan.

    Args:
        path (str, optional): The path to scan. Defaults to the base path.

    Raises:
        NotFoundError: If the path does not exist.

    Returns:
        Node: The root node of the new tree.
    """
    path = os.fspath(path) if path is not None else self.base_path
    if not os.path.exists(path):
      logging.error(f"Cannot build tree, path does not exist: {path}")
      raise NotFoundError(f"Path {path} does not exist")

    issues: List[ScanIssue] = []
    counter = [0]
    root = NodeBuilder.from_path(path).build()
    if root.is_dir:
      self._scan(root, 0, set(), issues, counter)
    if self.progress_interval and counter[0] >= self.progress_interval:
      logging.info(f"Scanned {counter[0]} entries under {path}")

    self.root = root
    self.base_path = path
    self.issues = issues
    self._nodes = {}
    self._parents = {}
    self._index(root, None)
    return root

  def refresh(self, base_path: str = None) -> Node:
    """Discard the current tree and build it again from disk.

    Node references obtained before the refresh are stale afterwards, they
    must be looked up again.

    Args:
        base_path (str, optional): The path to scan. Defaults to the last built path.

    Returns:
        Node: The root node of the new tree.
    """
    root = self.build(base_path)
    logging.info(f"Tree refreshed from {self.base_path}")
    return root

  def find_by_name(self, name: str) -> Optional[Node]:
    return find_by_name(self.root, name)

  def find_parent(self, target: Node) -> Optional[Node]:
    return find_parent(self.root, target)

  def parent_of(self, node: Node) -> Optional[Node]:
    """Parent of a node of the current tree, without walking the tree.

    Raises:
        NotFoundError: If the node is not part of the current tree.
    """
    self._require_attached(node, "node")
    return self._parents[node.id]

  def resolve(self, path: str) -> Optional[Node]:
    """Find a node from its path relative to the root.

    Absolute paths are accepted when they point inside the tree. An empty
    path or "." is the root.

    Args:
        path (str): The slash separated relative path.

    Returns:
        Optional[Node]: The node, None if there is no such node.
    """
    if self.root is None:
      return None
    path = os.fspath(path)
    if os.path.isabs(path):
      path = os.path.relpath(path, os.path.abspath(self.root.path))
    parts = [part for part in path.replace(os.sep, "/").split("/") if part not in ("", ".")]
    current = self.root
    for part in parts:
      if part == "..":
        return None
      current = next((child for child in current.children if child.name == part), None)
      if current is None:
        return None
    return current

  def relative_path(self, node: Node) -> str:
    """Path of a node relative to the root, slash separated, empty for the root."""
    self._require_attached(node, "node")
    parts = []
    while node is not self.root:
      parts.append(node.name)
      node = self._parents[node.id]
    return "/".join(reversed(parts))

  def search(self, pattern: str) -> List[Node]:
    """Find the nodes which name matches a pattern, ignoring case.

    The pattern and the results are kept as the last search.

    Args:
        pattern (str): A regular expression.

    Raises:
        PatternError: If the pattern is malformed, the last search is then empty.

    Returns:
        List[Node]: The matching nodes, parents before children.
    """
    try:
      state = search_tree(self.root, pattern)
    except PatternError as e:
      logging.error(str(e))
      self.last_search = SearchState(pattern=pattern)
      raise
    self.last_search = state
    return state.results

  #
  # Structural mutations
  #

  def create_directory(self, parent: Node, name: str) -> Node:
    """Create a directory in the parent directory.

    Args:
        parent (Node): The parent directory node.
        name (str): The new directory name.

    Raises:
        InvalidParentError: If the parent is not a directory.
        TreeIOError: If the directory cannot be created, e.g. it exists already.

    Returns:
        Node: The new directory node.
    """
    self._require_directory(parent, "parent")
    name = self._check_name(name)
    path = os.path.join(parent.path, name)
    try:
      os.mkdir(path)
    except OSError as e:
      logging.error(f"Error creating directory {path}: {e}")
      raise TreeIOError(path, e.strerror or str(e)) from e
    node = NodeBuilder.from_path(path, NodeKind.DIRECTORY).build()
    self._attach(parent, node)
    logging.info(f"Created directory {path}")
    return node

  def create_file(self, parent: Node, name: str) -> Node:
    """Create an empty file in the parent directory.

    Args:
        parent (Node): The parent directory node.
        name (str): The new file name.

    Raises:
        InvalidParentError: If the parent is not a directory.
        TreeIOError: If the file cannot be created, e.g. it exists already.

    Returns:
        Node: The new file node.
    """
    self._require_directory(parent, "parent")
    name = self._check_name(name)
    path = os.path.join(parent.path, name)
    try:
      with open(path, "x"):
        pass
    except OSError as e:
      logging.error(f"Error creating file {path}: {e}")
      raise TreeIOError(path, e.strerror or str(e)) from e
    node = NodeBuilder.from_path(path, NodeKind.FILE).build()
    self._attach(parent, node)
    logging.info(f"Created file {path}")
    return node

  def delete(self, parent: Node, target: Node):
    """Delete a node and what it holds, from disk and from the tree.

    Args:
        parent (Node): The directory node holding the target.
        target (Node): The node to delete, a child of parent.

    Raises:
        PolicyViolationError: If the target is the root.
        NotFoundError: If the target is not a child of the parent.
        TreeIOError: If the deletion on disk fails.
    """
    self._require_attached(target, "target")
    if target is self.root:
      raise PolicyViolationError("Deleting the root directory is not allowed")
    self._require_directory(parent, "parent")
    index = self._child_index(parent, target)
    if index is None:
      raise NotFoundError(f"{target.path} is not a child of {parent.path}")

    try:
      if os.path.isdir(target.path) and not os.path.islink(target.path):
        shutil.rmtree(target.path)
      else:
        os.remove(target.path)
    except OSError as e:
      logging.error(f"Error deleting {target.path}: {e}")
      raise TreeIOError(target.path, e.strerror or str(e)) from e

    del parent.children[index]
    self._forget(target)
    logging.info(f"Deleted {target.path}")

  def rename(self, target: Node, new_parent: Node, new_name: str):
    """Rename a node and/or move it to another directory.

    Paths of the nodes below a renamed directory follow.

    Args:
        target (Node): The node to rename or move.
        new_parent (Node): The destination directory node, may be the current parent.
        new_name (str): The new name.

    Raises:
        PolicyViolationError: If the target is the root.
        InvalidParentError: If the destination is not a directory or lies below the target.
        TreeIOError: If the destination exists already or the move fails.
    """
    self._require_attached(target, "target")
    if target is self.root:
      raise PolicyViolationError("Renaming the root directory is not allowed")
    self._require_directory(new_parent, "new parent")
    new_name = self._check_name(new_name)
    if any(node is new_parent for node in iter_nodes(target)):
      raise InvalidParentError(f"Cannot move {target.path} into itself")

    old_parent = self._parents[target.id]
    old_path = target.path
    new_path = os.path.join(new_parent.path, new_name)
    if new_path == old_path:
      target.refresh_info(self.follow_symlinks)
      return
    if os.path.lexists(new_path) and not self._is_case_rename(target, old_parent, new_parent, new_name):
      logging.error(f"Error moving {old_path} to {new_path}: destination exists")
      raise TreeIOError(new_path, "destination already exists")

    try:
      shutil.move(old_path, new_path)
    except OSError as e:
      logging.error(f"Error moving {old_path} to {new_path}: {e}")
      raise TreeIOError(old_path, e.strerror or str(e)) from e

    target.name = new_name
    self._relocate(target, new_path)
    target.refresh_info(self.follow_symlinks)
    if old_parent is not new_parent:
      del old_parent.children[self._child_index(old_parent, target)]
      new_parent.children.append(target)
      self._parents[target.id] = new_parent
    logging.info(f"Moved {old_path} to {new_path}")

  def import_file(self, destination_parent: Node, source_path: str) -> Node:
    """Copy a file from anywhere into a directory of the tree.

    An existing file of the same name is overwritten.

    Args:
        destination_parent (Node): The destination directory node.
        source_path (str): The path of the file to import.

    Raises:
        InvalidParentError: If the destination is not a directory.
        NotFoundError: If the source file does not exist.
        TreeIOError: If the source is not a regular file or the copy fails.

    Returns:
        Node: The imported file node.
    """
    self._require_directory(destination_parent, "destination")
    source_path = os.fspath(source_path)
    if not os.path.exists(source_path):
      raise NotFoundError(f"Source file {source_path} does not exist")
    if not os.path.isfile(source_path):
      raise TreeIOError(source_path, "not a regular file")

    name = os.path.basename(source_path)
    destination = os.path.join(destination_parent.path, name)
    if os.path.isdir(destination):
      raise TreeIOError(destination, "a directory exists with this name")
    try:
      shutil.copy2(source_path, destination)
    except OSError as e:
      logging.error(f"Error importing {source_path} to {destination}: {e}")
      raise TreeIOError(destination, e.strerror or str(e)) from e

    existing = next((child for child in destination_parent.children if child.name == name), None)
    if existing is not None and existing.is_file:
      existing.refresh_info(self.follow_symlinks)
      logging.info(f"Imported {source_path} over {destination}")
      return existing
    if existing is not None:
      del destination_parent.children[self._child_index(destination_parent, existing)]
      self._forget(existing)
    node = NodeBuilder.from_path(destination, NodeKind.FILE).build()
    self._attach(destination_parent, node)
    logging.info(f"Imported {source_path} to {destination}")
    return node

  #
  # Internals
  #

  def _scan(self, node: Node, depth: int, ancestors: Set[Tuple[int, int]],
            issues: List[ScanIssue], counter: List[int]):
    """Fill a directory node with its entries, recursively."""
    try:
      stat = os.stat(node.path)
    except OSError as e:
      self._skip(issues, node.path, e.strerror or str(e))
      return
    key = (stat.st_dev, stat.st_ino)
    if key in ancestors:
      self._skip(issues, node.path, "symbolic link cycle")
      return
    if depth >= self.max_depth:
      self._skip(issues, node.path, f"deeper than {self.max_depth} levels")
      return
    try:
      with os.scandir(node.path) as it:
        entries = list(it)
    except OSError as e:
      self._skip(issues, node.path, e.strerror or str(e))
      return

    ancestors.add(key)
    for entry in entries:
      try:
        is_dir = entry.is_dir(follow_symlinks=self.follow_symlinks)
        entry_stat = self._entry_stat(entry)
      except OSError as e:
        self._skip(issues, entry.path, e.strerror or str(e))
        continue
      child = NodeBuilder.from_entry(entry, is_dir, entry_stat).build()
      node.add_child(child)
      counter[0] += 1
      if self.progress_interval and counter[0] % self.progress_interval == 0:
        self._report_progress(counter[0])
      if is_dir:
        self._scan(child, depth + 1, ancestors, issues, counter)
    ancestors.discard(key)

  def _entry_stat(self, entry: os.DirEntry) -> os.stat_result:
    try:
      return entry.stat(follow_symlinks=self.follow_symlinks)
    except OSError:
      # dangling link, kept as a file node
      if self.follow_symlinks and entry.is_symlink():
        return entry.stat(follow_symlinks=False)
      raise

  def _skip(self, issues: List[ScanIssue], path: str, reason: str):
    logging.warning(f"Skipping {path}: {reason}")
    issues.append(ScanIssue(path=path, reason=reason))

  def _report_progress(self, count: int):
    if self.progress is not None:
      self.progress(count)
    else:
      logging.debug(f"Loading... {count} items")

  def _index(self, node: Node, parent: Optional[Node]):
    self._nodes[node.id] = node
    self._parents[node.id] = parent
    for child in node.children:
      self._index(child, node)

  def _forget(self, node: Node):
    for item in iter_nodes(node):
      self._nodes.pop(item.id, None)
      self._parents.pop(item.id, None)

  def _attach(self, parent: Node, node: Node):
    if not parent.add_child(node):
      raise InvalidParentError(f"{parent.path} is not a directory")
    self._index(node, parent)

  def _relocate(self, node: Node, path: str):
    node.path = path
    for child in node.children:
      self._relocate(child, os.path.join(path, child.name))

  def _require_attached(self, node: Node, role: str):
    if self.root is None:
      raise NotFoundError("The tree is not built")
    if node is None or self._nodes.get(node.id) is not node:
      raise NotFoundError(f"The {role} node is not part of the current tree")

  def _require_directory(self, node: Node, role: str):
    self._require_attached(node, role)
    if not node.is_dir:
      raise InvalidParentError(f"The {role} {node.path} is not a directory")

  def _check_name(self, name: str) -> str:
    try:
      return sanitize_name(name)
    except ValueError as e:
      raise InvalidNameError(str(e)) from e

  @staticmethod
  def _child_index(parent: Node, target: Node) -> Optional[int]:
    return next((i for i, child in enumerate(parent.children) if child is target), None)

  @staticmethod
  def _is_case_rename(target: Node, old_parent: Node, new_parent: Node, new_name: str) -> bool:
    """Whether the existing destination is the target itself under another letter case.

    Only holds on case-insensitive file systems, where the new spelling is not
    listed in the directory. Hard links to the target are other entries.
    """
    if old_parent is not new_parent or new_name.lower() != target.name.lower():
      return False
    new_path = os.path.join(new_parent.path, new_name)
    try:
      return os.path.samefile(target.path, new_path) and new_name not in os.listdir(new_parent.path)
    except OSError:
      return False
