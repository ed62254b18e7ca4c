import os
import pytest
import tempfile
import shutil
from pathlib import Path
from shadowtree.models.tree import Node, NodeKind
from shadowtree.utils.files import NodeBuilder


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    temp_path = tempfile.mkdtemp()
    yield temp_path
    # Cleanup after test
    shutil.rmtree(temp_path)


class TestNode:
    """Test suite for the tree node model."""

    def test_empty_directory_node(self):
        """Test a directory node without children."""
        node = Node(name="ws", path="/ws", kind=NodeKind.DIRECTORY)
        assert node.name == "ws"
        assert node.path == "/ws"
        assert node.is_dir is True
        assert node.is_file is False
        assert node.size == 0
        assert node.modified_at is None
        assert node.children == []

    def test_default_kind_is_file(self):
        """Test that nodes are files unless told otherwise."""
        node = Node(name="a.txt", path="/ws/a.txt")
        assert node.kind == NodeKind.FILE
        assert node.is_file is True

    def test_ids_are_unique(self):
        """Test that two equal nodes get different ids."""
        first = Node(name="a.txt", path="/ws/a.txt")
        second = Node(name="a.txt", path="/ws/a.txt")
        assert first.id != second.id

    def test_add_child_to_directory(self):
        """Test appending a child to a directory."""
        parent = Node(name="ws", path="/ws", kind=NodeKind.DIRECTORY)
        child = Node(name="a.txt", path="/ws/a.txt")
        assert parent.add_child(child) is True
        assert len(parent.children) == 1
        assert parent.children[0] is child

    def test_add_child_to_file_is_refused(self):
        """Test that a file node never gets children."""
        parent = Node(name="a.txt", path="/ws/a.txt")
        child = Node(name="b.txt", path="/ws/a.txt/b.txt")
        assert parent.add_child(child) is False
        assert parent.children == []

    def test_count(self):
        """Test counting the nodes of a subtree."""
        root = Node(name="ws", path="/ws", kind=NodeKind.DIRECTORY)
        docs = Node(name="docs", path="/ws/docs", kind=NodeKind.DIRECTORY)
        root.add_child(docs)
        root.add_child(Node(name="notes.txt", path="/ws/notes.txt"))
        docs.add_child(Node(name="a.txt", path="/ws/docs/a.txt"))
        assert root.count() == 4
        assert docs.count() == 2

    def test_refresh_info(self, temp_dir):
        """Test that the size and time snapshot follow the file on disk."""
        file_path = Path(temp_dir) / "sample.txt"
        file_path.write_text("Sample content")
        node = Node(name="sample.txt", path=str(file_path))
        node.refresh_info()
        assert node.size == len("Sample content")
        assert node.modified_at is not None

        file_path.unlink()
        node.refresh_info()
        assert node.size == 0
        assert node.modified_at is None

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symbolic links not supported")
    def test_refresh_info_symlink(self, temp_dir):
        """Test that a link is read itself unless links are followed."""
        target = Path(temp_dir) / "target.txt"
        target.write_text("Sample content")
        link = Path(temp_dir) / "link"
        os.symlink(str(target), str(link))
        node = Node(name="link", path=str(link))
        node.refresh_info(follow_symlinks=False)
        assert node.size == os.lstat(str(link)).st_size
        node.refresh_info()
        assert node.size == len("Sample content")

        target.unlink()
        node.refresh_info()
        assert node.size == os.lstat(str(link)).st_size
        assert node.modified_at is not None

    def test_refresh_info_directory_has_no_size(self, temp_dir):
        """Test that a directory snapshot has a time but no size."""
        node = Node(name="tmp", path=temp_dir, kind=NodeKind.DIRECTORY)
        node.refresh_info()
        assert node.size == 0
        assert node.modified_at is not None


class TestNodeBuilder:
    """Test suite for NodeBuilder."""

    def test_from_path_file(self, temp_dir):
        """Test making a file node from its path."""
        file_path = Path(temp_dir) / "file.txt"
        file_path.write_bytes(b"x" * 100)
        node = NodeBuilder.from_path(str(file_path)).build()
        assert node.name == "file.txt"
        assert node.path == str(file_path)
        assert node.kind == NodeKind.FILE
        assert node.size == 100
        assert node.children == []

    def test_from_path_directory(self, temp_dir):
        """Test making a directory node from its path."""
        node = NodeBuilder.from_path(temp_dir).build()
        assert node.name == os.path.basename(temp_dir)
        assert node.is_dir is True
        assert node.size == 0

    def test_from_path_with_trailing_separator(self, temp_dir):
        """Test that a trailing separator does not empty the name."""
        node = NodeBuilder.from_path(temp_dir + os.sep).build()
        assert node.name == os.path.basename(temp_dir)

    def test_from_path_forced_kind(self, temp_dir):
        """Test forcing the node kind."""
        node = NodeBuilder.from_path(temp_dir, NodeKind.DIRECTORY).build()
        assert node.kind == NodeKind.DIRECTORY

    def test_from_entry(self, temp_dir):
        """Test making nodes from directory listing entries."""
        (Path(temp_dir) / "docs").mkdir()
        (Path(temp_dir) / "notes.txt").write_text("notes")
        with os.scandir(temp_dir) as it:
            entries = {entry.name: entry for entry in it}
        docs = NodeBuilder.from_entry(entries["docs"], True).build()
        notes = NodeBuilder.from_entry(entries["notes.txt"], False, entries["notes.txt"].stat()).build()
        assert docs.is_dir is True
        assert docs.path == os.path.join(temp_dir, "docs")
        assert notes.is_file is True
        assert notes.size == 5
        assert notes.modified_at is not None
