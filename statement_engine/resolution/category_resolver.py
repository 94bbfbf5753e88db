"""
Category tree resolution.

Maps a rule's category/subcategory onto a caller-supplied category tree by
name-path. The tree is only ever read.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from ..models import CategoryNode, DetectionRule
from ..patterns.uk_providers import CATEGORY_ROOT_NAMES, SUBCATEGORY_PATHS

logger = logging.getLogger(__name__)


def build_category_tree(categories: Iterable[Dict]) -> List[CategoryNode]:
    """
    Build category nodes from plain dicts and return the roots.

    Accepts either a flat list of {id, name, parent_id} entries (parentId is
    also accepted) or nested entries carrying their own 'children' lists.
    Sibling order follows input order.
    """
    nodes: Dict[str, CategoryNode] = {}
    roots: List[CategoryNode] = []
    pending_parents = []

    def add(item: Dict, parent: Optional[CategoryNode]) -> None:
        node = CategoryNode(
            id=str(item.get("id") or item.get("_id") or item.get("name")),
            name=str(item.get("name") or ""),
            parent_id=parent.id if parent else item.get("parent_id") or item.get("parentId"),
        )
        if node.parent_id is not None:
            node.parent_id = str(node.parent_id)
        nodes[node.id] = node
        if parent is not None:
            parent.children.append(node)
        elif node.parent_id is None:
            roots.append(node)
        else:
            pending_parents.append(node)
        for child in item.get("children") or []:
            if isinstance(child, dict):
                add(child, node)

    for item in categories:
        if isinstance(item, dict):
            add(item, None)

    for node in pending_parents:
        parent = nodes.get(node.parent_id)
        if parent is None:
            logger.debug("Category '%s' has unknown parent %s; treated as root", node.name, node.parent_id)
            roots.append(node)
        else:
            parent.children.append(node)

    return roots


def _find_by_name(nodes: Iterable[CategoryNode], name: str) -> Optional[CategoryNode]:
    wanted = name.strip().lower()
    for node in nodes:
        if node.name.strip().lower() == wanted:
            return node
    return None


def find_category_by_path(tree: Sequence[CategoryNode], path: Sequence[str]) -> Optional[CategoryNode]:
    """Walk the tree matching one name per level, case-insensitively."""
    if not path:
        return None
    level: Sequence[CategoryNode] = tree
    node = None
    for name in path:
        node = _find_by_name(level, name)
        if node is None:
            return None
        level = node.children
    return node


def subcategory_path(
    subcategory: Optional[str],
    category_path: Optional[Sequence[str]] = None,
) -> Optional[List[str]]:
    if category_path:
        return list(category_path)
    if subcategory:
        return SUBCATEGORY_PATHS.get(subcategory.lower())
    return None


def root_category_name(category: str) -> str:
    category = (category or "").lower()
    return CATEGORY_ROOT_NAMES.get(category, category.replace("_", " "))


def resolve_category(
    tree: Sequence[CategoryNode],
    category: str,
    subcategory: Optional[str] = None,
    category_path: Optional[Sequence[str]] = None,
) -> Optional[CategoryNode]:
    """
    Resolve a category against the tree.

    Tries the subcategory name-path first, then the root category by name
    (its first child when it has children, otherwise the root itself).

    Returns:
        Resolved node, or None when nothing matches
    """
    path = subcategory_path(subcategory, category_path)
    if path:
        node = find_category_by_path(tree, path)
        if node is not None:
            return node

    root = _find_by_name(tree, root_category_name(category))
    if root is None:
        logger.debug("No category mapping for %s/%s", category, subcategory)
        return None
    return root.children[0] if root.children else root


def resolve_rule_category(tree: Sequence[CategoryNode], rule: DetectionRule) -> Optional[CategoryNode]:
    return resolve_category(tree, rule.category, rule.subcategory, rule.category_path)
