from datetime import datetime
from typing import Optional
from ..models.tree import Node, NodeKind
import os
import re

FORBIDDEN_NAME_CHARS = re.compile(r'[*?|<>"\\/\x00]')

SIZE_UNITS = ["B", "KB", "MB", "GB"]


def sanitize_name(name: str) -> str:
  """Check a node name is a single, safe path component.

  Line breaks are dropped, everything else that could escape the parent
  directory is refused.

  Args:
      name (str): The proposed name.

  Raises:
      ValueError: If the name is empty, a dot entry or holds forbidden characters.

  Returns:
      str: The sanitized name.
  """
  name = name.replace("\r", "").replace("\n", "")
  if not name:
    raise ValueError("Invalid name: empty")
  if name in (".", ".."):
    raise ValueError(f"Invalid name: '{name}' not allowed")
  if FORBIDDEN_NAME_CHARS.search(name) or (os.altsep and os.altsep in name):
    raise ValueError("Invalid name: contains forbidden characters")
  return name


def format_size(size: int) -> str:
  """Human readable byte size, e.g. 1.50KB."""
  value = float(size)
  unit = 0
  while value >= 1024 and unit < len(SIZE_UNITS) - 1:
    value /= 1024
    unit += 1
  return f"{value:.2f}{SIZE_UNITS[unit]}"


def format_time(value: Optional[datetime]) -> str:
  if value is None:
    return "-"
  return value.strftime("%Y-%m-%d %H:%M:%S")


class NodeBuilder:
  """Makes tree nodes from filesystem entries, with their metadata snapshot.
  """

  def __init__(self, name: str, path: str, kind: NodeKind = NodeKind.FILE):
    self.root = Node(name=name, path=path, kind=kind)

  @classmethod
  def from_path(cls, path: str, kind: NodeKind = None):
    """Make a node for an existing path, reading its kind from disk if not given.

    Args:
        path (str): The filesystem path.
        kind (NodeKind, optional): The node kind. Defaults to the kind found on disk.

    Returns:
        NodeBuilder: The builder
    """
    if kind is None:
      kind = NodeKind.DIRECTORY if os.path.isdir(path) else NodeKind.FILE
    name = os.path.basename(os.path.normpath(path)) or path
    return cls(name=name, path=path, kind=kind).with_info()

  @classmethod
  def from_entry(cls, entry: os.DirEntry, is_dir: bool, stat: Optional[os.stat_result] = None):
    """Make a node from a directory listing entry.

    Args:
        entry (os.DirEntry): The entry returned by os.scandir.
        is_dir (bool): Whether the entry is handled as a directory.
        stat (os.stat_result, optional): The entry stat, if already known.

    Returns:
        NodeBuilder: The builder
    """
    kind = NodeKind.DIRECTORY if is_dir else NodeKind.FILE
    builder = cls(name=entry.name, path=entry.path, kind=kind)
    if stat is None:
      return builder.with_info()
    builder.root.modified_at = datetime.fromtimestamp(stat.st_mtime)
    builder.root.size = 0 if is_dir else stat.st_size
    return builder

  def with_info(self):
    self.root.refresh_info()
    return self

  def build(self) -> Node:
    """Get the built node.

    Returns:
        Node: The node
    """
    return self.root
