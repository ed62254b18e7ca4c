from datetime import datetime
from shadowtree.models.tree import Node, NodeKind, SearchState
from shadowtree.utils.files import format_size, format_time
from shadowtree.utils.render import render_tree, render_search_results, DIRECTORY_MARK, FILE_MARK


def make_tree():
    root = Node(name="ws", path="/ws", kind=NodeKind.DIRECTORY)
    docs = Node(name="docs", path="/ws/docs", kind=NodeKind.DIRECTORY)
    root.add_child(docs)
    docs.add_child(Node(name="a.txt", path="/ws/docs/a.txt", size=2048,
                        modified_at=datetime(2024, 5, 1, 12, 30, 0)))
    root.add_child(Node(name="notes.txt", path="/ws/notes.txt", size=10))
    return root


class TestFormat:
    """Test suite for size and time formatting."""

    def test_format_size(self):
        """Test human readable sizes."""
        assert format_size(0) == "0.00B"
        assert format_size(1023) == "1023.00B"
        assert format_size(1536) == "1.50KB"
        assert format_size(5 * 1024 * 1024) == "5.00MB"
        assert format_size(3 * 1024 ** 4) == "3072.00GB"

    def test_format_time(self):
        """Test time formatting, with a placeholder for unknown times."""
        assert format_time(datetime(2024, 5, 1, 12, 30, 0)) == "2024-05-01 12:30:00"
        assert format_time(None) == "-"


class TestRender:
    """Test suite for tree and search result rendering."""

    def test_render_tree(self):
        """Test rendering a tree with two spaces per level."""
        assert render_tree(make_tree()) == [
            f"{DIRECTORY_MARK}ws",
            f"  {DIRECTORY_MARK}docs",
            f"    {FILE_MARK}a.txt",
            f"  {FILE_MARK}notes.txt",
        ]

    def test_render_tree_with_details(self):
        """Test rendering sizes and times."""
        lines = render_tree(make_tree(), show_details=True)
        assert lines[2] == f"    {FILE_MARK}a.txt  2.00KB  2024-05-01 12:30:00"
        assert lines[3] == f"  {FILE_MARK}notes.txt  10.00B  -"

    def test_render_empty_tree(self):
        """Test rendering a missing tree."""
        assert render_tree(None) == ["Tree is empty."]

    def test_render_search_results(self):
        """Test listing search results with their paths."""
        tree = make_tree()
        state = SearchState(pattern="txt", results=[tree.children[0].children[0], tree.children[1]])
        assert render_search_results(state) == [
            "Search results (2) for: txt",
            f"  {FILE_MARK}a.txt  /ws/docs/a.txt",
            f"  {FILE_MARK}notes.txt  /ws/notes.txt",
        ]

    def test_render_no_search_results(self):
        """Test the messages for empty or missing searches."""
        assert render_search_results(SearchState(pattern="zzz")) == ["No results found for: zzz"]
        assert render_search_results(None) == ["No search performed."]
