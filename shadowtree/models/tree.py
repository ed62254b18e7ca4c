from datetime import datetime
from enum import Enum
from typing import Optional, List
from uuid import uuid4
from pydantic import BaseModel, Field
import logging
import os


class NodeKind(str, Enum):
  FILE = "file"
  DIRECTORY = "directory"


class Node(BaseModel):
  """One file or directory entry of the shadow tree.

  Children are owned by their parent node only, nodes do not point back to
  their parent. Structural changes go through the TreeManager.
  """
  id: str = Field(default_factory=lambda: uuid4().hex)
  name: str
  path: str
  kind: NodeKind = NodeKind.FILE
  size: int = 0
  modified_at: Optional[datetime] = None
  children: List["Node"] = Field(default_factory=list)

  @property
  def is_dir(self) -> bool:
    return self.kind == NodeKind.DIRECTORY

  @property
  def is_file(self) -> bool:
    return self.kind == NodeKind.FILE

  def add_child(self, child: "Node") -> bool:
    """Append a child node, only allowed on directories.

    Args:
        child (Node): The node to append.

    Returns:
        bool: True if the child was appended, False if this node is a file.
    """
    if not self.is_dir:
      logging.error(f"Cannot add children to file node {self.path}")
      return False
    self.children.append(child)
    return True

  def refresh_info(self, follow_symlinks: bool = True):
    """Update the size and modification time snapshot from disk.

    Args:
        follow_symlinks (bool, optional): Read the link target rather than the link. Defaults to True.
    """
    try:
      if follow_symlinks and os.path.islink(self.path) and not os.path.exists(self.path):
        follow_symlinks = False
      stat = os.stat(self.path, follow_symlinks=follow_symlinks)
      self.modified_at = datetime.fromtimestamp(stat.st_mtime)
      self.size = 0 if self.is_dir else stat.st_size
    except OSError as e:
      logging.warning(f"Could not read file info for {self.path}: {e}")
      self.modified_at = None
      self.size = 0

  def count(self) -> int:
    """Number of nodes in this subtree, this node included."""
    return 1 + sum(child.count() for child in self.children)


class ScanIssue(BaseModel):
  path: str
  reason: str


class SearchState(BaseModel):
  pattern: str
  results: List[Node] = Field(default_factory=list)

# We need to update self references.
Node.model_rebuild()
