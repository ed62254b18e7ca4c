from .tree import Node, NodeKind, ScanIssue, SearchState
