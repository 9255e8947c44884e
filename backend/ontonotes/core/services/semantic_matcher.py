from __future__ import annotations

from typing import TYPE_CHECKING

from ontonotes.core.services.ontology_store import find_nodes_by_label

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ontonotes.core.models.ontology import OntologyTree


def get_semantic_matches(tree: OntologyTree, label: str) -> set[str]:
    """Return `label` plus the labels of every descendant of each concept carrying it.

    A broad concept subsumes its narrower ones, never the other way round, so
    ancestors are not included. Unknown labels expand to themselves only.
    The walk keeps a visited set and terminates even on a corrupted, cyclic tree.
    """
    matches = {label}
    visited: set[str] = set()
    stack = [node.id for node in find_nodes_by_label(tree, label)]
    while stack:
        node_id = stack.pop()
        if node_id in visited:
            continue
        visited.add(node_id)
        node = tree.nodes.get(node_id)
        if node is None:
            continue
        matches.add(node.label)
        stack.extend(node.child_ids)
    return matches


def expand_tags(tree: OntologyTree, labels: Iterable[str]) -> set[str]:
    """Union of the semantic expansion of each label."""
    expanded: set[str] = set()
    for label in labels:
        if label:
            expanded |= get_semantic_matches(tree, label)
    return expanded
