from __future__ import annotations
"""Navigation tree builder.

Turns a flat, already ordered list of navigation rows into a forest. The forest is an
arena: ``NavForest.nodes`` maps id -> NavNode and every node keeps the *ids* of its
children, never references to other nodes. Sibling order is the input order; nothing
here sorts by ``position`` (callers hand in rows ordered the way they want them shown).

Usage:
    forest = build_tree(rows)
    forest.to_dicts()   # nested [{'id': 1, ..., 'children': [...] | None}, ...]

Rows may be ORM objects or mappings; ``navId`` is accepted in place of ``id``.
Construction does not detect cycles. Items whose parent chain loops back on itself
never reach a root and are therefore missing from ``to_dicts()``; ``unreachable_ids()``
reports them. Every traversal carries a visited set so that walking from an arbitrary
node terminates even inside such a loop.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set

NODE_FIELDS = ('title', 'type', 'position', 'status', 'path', 'parent_nav_id', 'section_id')


@dataclass
class NavNode:
    id: int
    title: str
    type: str
    position: int = 0
    status: int = 1
    path: Optional[str] = None
    parent_nav_id: Optional[int] = None
    section_id: Optional[int] = None
    # None until the first child is attached
    children: Optional[List[int]] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'type': self.type,
            'position': self.position,
            'status': self.status,
            'path': self.path,
            'parent_nav_id': self.parent_nav_id,
            'section_id': self.section_id,
        }


@dataclass
class NavForest:
    nodes: Dict[int, NavNode] = field(default_factory=dict)
    roots: List[int] = field(default_factory=list)

    def iter_nodes(self) -> Iterator[NavNode]:
        """Depth-first, pre-order walk over everything reachable from the roots."""
        visited: Set[int] = set()
        stack = list(reversed(self.roots))
        while stack:
            node_id = stack.pop()
            if node_id in visited:
                continue
            visited.add(node_id)
            node = self.nodes[node_id]
            yield node
            stack.extend(reversed(node.children or []))

    def count_nodes(self) -> int:
        return sum(1 for _ in self.iter_nodes())

    def unreachable_ids(self) -> Set[int]:
        return set(self.nodes) - {n.id for n in self.iter_nodes()}

    def depth_of(self, node_id: int) -> Optional[int]:
        """0 for roots; None when the parent chain loops without reaching a root."""
        depth = 0
        seen: Set[int] = set()
        current = self.nodes[node_id]
        while current.parent_nav_id is not None and current.parent_nav_id in self.nodes:
            if current.id in seen:
                return None
            seen.add(current.id)
            current = self.nodes[current.parent_nav_id]
            depth += 1
        return depth

    def subtree(self, node_id: int, _visited: Optional[Set[int]] = None) -> Dict[str, Any]:
        visited = _visited if _visited is not None else set()
        visited.add(node_id)
        node = self.nodes[node_id]
        out = node.as_dict()
        if node.children is None:
            out['children'] = None
        else:
            out['children'] = [self.subtree(c, visited) for c in node.children if c not in visited]
        return out

    def to_dicts(self) -> List[Dict[str, Any]]:
        visited: Set[int] = set()
        return [self.subtree(r, visited) for r in self.roots if r not in visited]


def _read(row: Any, key: str, default=None):
    if isinstance(row, dict):
        return row.get(key, default)
    return getattr(row, key, default)


def _as_int(value) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _resolve_ref(value, title_index: Dict[str, int]) -> Optional[int]:
    """Reference columns may arrive as ints, numeric strings or (legacy) the parent's title.

    Digit-only strings are read as ids, never looked up as titles; an item whose title is
    all digits cannot be referenced by title.
    """
    if isinstance(value, str) and not value.strip().lstrip('-').isdigit():
        return title_index.get(value)
    return _as_int(value)


def build_tree(items: Iterable[Any]) -> NavForest:
    rows = list(items)
    title_index: Dict[str, int] = {}
    for row in rows:
        row_id = _as_int(_read(row, 'id', _read(row, 'navId')))
        title = _read(row, 'title')
        if row_id is not None and isinstance(title, str):
            title_index[title] = row_id  # a repeated title resolves to its last row

    forest = NavForest()
    order: List[int] = []
    for row in rows:
        row_id = _as_int(_read(row, 'id', _read(row, 'navId')))
        if row_id is None:
            raise ValueError(f'navigation row without id: {row!r}')
        if row_id in forest.nodes:
            continue  # duplicate row, first occurrence wins
        values = {f: _read(row, f) for f in NODE_FIELDS}
        values['parent_nav_id'] = _resolve_ref(values['parent_nav_id'], title_index)
        values['section_id'] = _resolve_ref(values['section_id'], title_index)
        values['position'] = _as_int(values['position']) or 0
        forest.nodes[row_id] = NavNode(id=row_id, **values)
        order.append(row_id)

    for row_id in order:
        node = forest.nodes[row_id]
        parent_id = node.parent_nav_id
        if parent_id is None or parent_id not in forest.nodes:
            forest.roots.append(row_id)
            continue
        parent = forest.nodes[parent_id]
        if parent.children is None:
            parent.children = []
        parent.children.append(row_id)
    return forest


__all__ = ['NavNode', 'NavForest', 'build_tree']
