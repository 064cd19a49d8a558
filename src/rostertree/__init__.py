"""
rostertree - Editable organizational trees

rostertree keeps a league-style hierarchy (conferences, divisions, teams)
in memory and restructures it: insert, delete, duplicate, drag-and-drop
moves, renames and leaf-to-folder conversion, plus substring search with
ancestor match propagation.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("rostertree")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed
__license__ = "MIT"

from rostertree.tree import NodeCategory, TreeNode
from rostertree.tree.engine import OrgTree
from rostertree.tree.search import SearchIndex
from rostertree.tree.store import TreeStore

__all__ = [
    "__version__",
    "NodeCategory",
    "OrgTree",
    "SearchIndex",
    "TreeNode",
    "TreeStore",
]
