from .models.tree import Node, NodeKind, ScanIssue, SearchState
from .services.tree import TreeManager, find_by_name, find_parent
from .config import TreeSettings
