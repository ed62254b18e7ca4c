from typing import List, Optional
from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel
from ..models.tree import Node
from ..services.errors import (
  TreeError,
  NotFoundError,
  InvalidParentError,
  InvalidNameError,
  PatternError,
  PolicyViolationError,
)
from ..services.tree import TreeManager


class CreateRequest(BaseModel):
  parent: str = ""
  name: str


class ImportRequest(BaseModel):
  parent: str = ""
  source: str


class MoveRequest(BaseModel):
  path: str
  new_parent: Optional[str] = None
  new_name: Optional[str] = None


class RefreshRequest(BaseModel):
  base_path: Optional[str] = None


def to_http_exception(error: TreeError) -> HTTPException:
  """Map a tree error to the HTTP error returned to the client."""
  if isinstance(error, NotFoundError):
    code = status.HTTP_404_NOT_FOUND
  elif isinstance(error, (InvalidParentError, InvalidNameError, PatternError)):
    code = status.HTTP_400_BAD_REQUEST
  elif isinstance(error, PolicyViolationError):
    code = status.HTTP_403_FORBIDDEN
  else:
    code = status.HTTP_409_CONFLICT
  return HTTPException(status_code=code, detail=str(error))


class TreeRouter:
  """HTTP endpoints over a tree manager, nodes are addressed by their path
  relative to the tree root.
  """

  def __init__(self, manager: TreeManager, prefix: str = ""):
    self.manager = manager
    self.router = APIRouter(prefix=prefix)
    self._add_routes()

  def lookup(self, path: str) -> Node:
    """Resolve a relative path to a node of the tree, or fail with a 404."""
    if not self.manager.is_built:
      raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="The tree is not built")
    node = self.manager.resolve(path)
    if node is None:
      raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No node at '{path}'")
    return node

  def _add_routes(self):
    manager = self.manager
    router = self.router

    @router.get("/tree", response_model=Node)
    async def get_tree():
      return self.lookup("")

    @router.get("/nodes/{path:path}", response_model=Node)
    async def get_node(path: str):
      return self.lookup(path)

    @router.get("/search", response_model=List[Node])
    async def search(pattern: str):
      try:
        return manager.search(pattern)
      except TreeError as e:
        raise to_http_exception(e)

    @router.post("/directories", response_model=Node, status_code=status.HTTP_201_CREATED)
    async def create_directory(request: CreateRequest):
      parent = self.lookup(request.parent)
      try:
        return manager.create_directory(parent, request.name)
      except TreeError as e:
        raise to_http_exception(e)

    @router.post("/files", response_model=Node, status_code=status.HTTP_201_CREATED)
    async def create_file(request: CreateRequest):
      parent = self.lookup(request.parent)
      try:
        return manager.create_file(parent, request.name)
      except TreeError as e:
        raise to_http_exception(e)

    @router.post("/imports", response_model=Node, status_code=status.HTTP_201_CREATED)
    async def import_file(request: ImportRequest):
      parent = self.lookup(request.parent)
      try:
        return manager.import_file(parent, request.source)
      except TreeError as e:
        raise to_http_exception(e)

    @router.post("/moves", response_model=Node)
    async def move(request: MoveRequest):
      target = self.lookup(request.path)
      try:
        if request.new_parent is None:
          new_parent = manager.parent_of(target)
          if new_parent is None:
            new_parent = target
        else:
          new_parent = self.lookup(request.new_parent)
        manager.rename(target, new_parent, request.new_name or target.name)
      except TreeError as e:
        raise to_http_exception(e)
      return target

    @router.delete("/nodes/{path:path}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete(path: str):
      target = self.lookup(path)
      try:
        manager.delete(manager.parent_of(target), target)
      except TreeError as e:
        raise to_http_exception(e)

    @router.post("/refresh", response_model=Node)
    async def refresh(request: RefreshRequest):
      try:
        return manager.refresh(request.base_path)
      except TreeError as e:
        raise to_http_exception(e)
