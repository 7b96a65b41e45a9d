"""
In-memory view of the category hierarchy.

Whole-tree work (descendant checks, level cascades, subtree deletes) loads the
``(category_id, parent_id, level)`` triples once and walks them here instead of
querying the store once per node.
"""
import uuid
from collections import defaultdict, deque
from typing import Dict, Iterable, List, Optional, Set, Tuple

CategoryRow = Tuple[uuid.UUID, Optional[uuid.UUID], int]


class CategoryTree:
    def __init__(self, rows: Iterable[CategoryRow]):
        self.parent_of: Dict[uuid.UUID, Optional[uuid.UUID]] = {}
        self.level_of: Dict[uuid.UUID, int] = {}
        self.children_of: Dict[Optional[uuid.UUID], List[uuid.UUID]] = defaultdict(list)
        for category_id, parent_id, level in rows:
            self.parent_of[category_id] = parent_id
            self.level_of[category_id] = level
            self.children_of[parent_id].append(category_id)

    def __contains__(self, category_id) -> bool:
        return category_id in self.parent_of

    def children(self, category_id: Optional[uuid.UUID]) -> List[uuid.UUID]:
        return list(self.children_of.get(category_id, []))

    def descendants(self, category_id: uuid.UUID) -> List[uuid.UUID]:
        """Every category below ``category_id`` in breadth-first order (root excluded)."""
        found: List[uuid.UUID] = []
        seen: Set[uuid.UUID] = {category_id}
        queue = deque(self.children_of.get(category_id, []))
        while queue:
            node = queue.popleft()
            if node in seen:
                continue
            seen.add(node)
            found.append(node)
            queue.extend(self.children_of.get(node, []))
        return found

    def is_descendant(self, candidate_id: uuid.UUID, ancestor_id: uuid.UUID) -> bool:
        if candidate_id == ancestor_id:
            return False
        return candidate_id in set(self.descendants(ancestor_id))

    def move(self, category_id: uuid.UUID, new_parent_id: Optional[uuid.UUID]) -> None:
        old_parent_id = self.parent_of.get(category_id)
        siblings = self.children_of.get(old_parent_id)
        if siblings and category_id in siblings:
            siblings.remove(category_id)
        self.parent_of[category_id] = new_parent_id
        self.children_of[new_parent_id].append(category_id)

    def relevel(self, category_id: uuid.UUID, level: int) -> Dict[uuid.UUID, int]:
        """
        Assign ``level`` to ``category_id`` and ``level + depth`` to each descendant.

        Returns only the categories whose stored level changes, mapped to their new level.
        """
        changes: Dict[uuid.UUID, int] = {}
        seen: Set[uuid.UUID] = set()
        queue = deque([(category_id, level)])
        while queue:
            node, node_level = queue.popleft()
            if node in seen:
                continue
            seen.add(node)
            if self.level_of.get(node) != node_level:
                changes[node] = node_level
                self.level_of[node] = node_level
            for child in self.children_of.get(node, []):
                queue.append((child, node_level + 1))
        return changes

    def deletion_batches(self, category_ids: Iterable[uuid.UUID]) -> List[List[uuid.UUID]]:
        """Group ids by level, deepest first, so children go before their parents."""
        by_level: Dict[int, List[uuid.UUID]] = defaultdict(list)
        for category_id in category_ids:
            by_level[self.level_of.get(category_id, 0)].append(category_id)
        return [by_level[level] for level in sorted(by_level, reverse=True)]


def group_by_level(changes: Dict[uuid.UUID, int]) -> Dict[int, List[uuid.UUID]]:
    grouped: Dict[int, List[uuid.UUID]] = defaultdict(list)
    for category_id, level in changes.items():
        grouped[level].append(category_id)
    return dict(grouped)
