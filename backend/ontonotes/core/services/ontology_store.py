"""Pure operations over `OntologyTree` values.

Every function takes a tree and returns a new one (or raises); inputs are
never modified. Validation happens before any copy is built, so a failed call
leaves nothing half-applied.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from pydantic import ValidationError

from ontonotes.core.errors import (
    CycleError,
    ImportFormatError,
    InvalidConceptError,
    NotFoundError,
    UnknownParentError,
)
from ontonotes.core.models.base import utc_now
from ontonotes.core.models.ontology import ConceptNode, OntologyTree

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

TAG_PREFIXES = ("#", "@")

_REQUIRED_DOCUMENT_KEYS = ("nodes", "rootIds")


def empty_tree() -> OntologyTree:
    return OntologyTree()


def normalize_label(label: str) -> str:
    """Strip the label and default it to a '#' topic tag."""
    if not isinstance(label, str) or not label.strip():
        raise InvalidConceptError("Concept label must be a non-empty string")
    stripped = label.strip()
    if stripped.startswith(TAG_PREFIXES):
        if len(stripped) == 1:
            raise InvalidConceptError(f"Concept label {label!r} has no name after its prefix")
        return stripped
    return f"#{stripped}"


def create_node(
    label: str,
    parent_id: str | None = None,
    attributes: Mapping[str, str] | None = None,
) -> ConceptNode:
    """Build a fresh concept with a new id. Does not insert it anywhere."""
    return ConceptNode(
        id=uuid4().hex,
        label=normalize_label(label),
        parent_id=parent_id,
        attributes=dict(attributes or {}),
    )


def _with(tree: OntologyTree, nodes: dict[str, ConceptNode], root_ids: tuple[str, ...]) -> OntologyTree:
    return tree.model_copy(update={"nodes": nodes, "root_ids": root_ids, "updated_at": utc_now()})


def _require(tree: OntologyTree, node_id: str) -> ConceptNode:
    node = tree.nodes.get(node_id)
    if node is None:
        raise NotFoundError(node_id)
    return node


def add_node(tree: OntologyTree, node: ConceptNode) -> OntologyTree:
    """Insert `node` as the last child of its parent, or as the last root."""
    if node.id in tree.nodes:
        raise InvalidConceptError(f"Concept id {node.id!r} already exists")
    if node.parent_id is not None and node.parent_id not in tree.nodes:
        raise UnknownParentError(node.parent_id)

    nodes = dict(tree.nodes)
    # A freshly inserted concept has no children yet.
    nodes[node.id] = node if not node.child_ids else node.model_copy(update={"child_ids": ()})
    root_ids = tree.root_ids

    if node.parent_id is None:
        root_ids = (*root_ids, node.id)
    else:
        parent = nodes[node.parent_id]
        nodes[parent.id] = parent.model_copy(update={"child_ids": (*parent.child_ids, node.id)})

    return _with(tree, nodes, root_ids)


def remove_node(tree: OntologyTree, node_id: str) -> OntologyTree:
    """Delete a concept and hand its children to its former parent.

    Children keep their relative order and are appended after the siblings
    already present at the parent level (or after the existing roots).
    """
    node = _require(tree, node_id)
    former_parent_id = node.parent_id if node.parent_id in tree.nodes else None

    nodes = dict(tree.nodes)
    del nodes[node_id]
    orphans = tuple(c for c in node.child_ids if c in nodes)
    for child_id in orphans:
        nodes[child_id] = nodes[child_id].model_copy(update={"parent_id": former_parent_id})

    root_ids = tuple(r for r in tree.root_ids if r != node_id)
    if former_parent_id is None:
        root_ids = (*root_ids, *orphans)
    else:
        parent = nodes[former_parent_id]
        siblings = tuple(c for c in parent.child_ids if c != node_id)
        nodes[former_parent_id] = parent.model_copy(update={"child_ids": (*siblings, *orphans)})

    return _with(tree, nodes, root_ids)


def update_node(
    tree: OntologyTree,
    node_id: str,
    *,
    label: str | None = None,
    attributes: Mapping[str, str] | None = None,
) -> OntologyTree:
    """Replace the label and/or the whole attribute map of a concept.

    Attributes are not merged: the given mapping becomes the new map.
    """
    node = _require(tree, node_id)
    changes: dict[str, Any] = {}
    if label is not None:
        changes["label"] = normalize_label(label)
    if attributes is not None:
        changes["attributes"] = dict(attributes)

    nodes = dict(tree.nodes)
    nodes[node_id] = node.model_copy(update=changes)
    return _with(tree, nodes, tree.root_ids)


def move_node(
    tree: OntologyTree,
    node_id: str,
    new_parent_id: str | None,
    position: int | None = None,
) -> OntologyTree:
    """Reparent a concept, inserting it at `position` among its new siblings.

    `position` is a 0-based index clamped to the sibling count; None appends.
    `new_parent_id=None` moves the concept to the roots.
    """
    node = _require(tree, node_id)
    if new_parent_id is not None:
        _require(tree, new_parent_id)
        if new_parent_id == node_id or new_parent_id in get_descendant_ids(tree, node_id):
            raise CycleError(node_id, new_parent_id)

    nodes = dict(tree.nodes)
    root_ids = tree.root_ids

    old_parent = nodes.get(node.parent_id) if node.parent_id is not None else None
    if old_parent is None:
        root_ids = tuple(r for r in root_ids if r != node_id)
    else:
        nodes[old_parent.id] = old_parent.model_copy(
            update={"child_ids": tuple(c for c in old_parent.child_ids if c != node_id)}
        )

    nodes[node_id] = node.model_copy(update={"parent_id": new_parent_id})

    if new_parent_id is None:
        root_ids = _insert_at(root_ids, node_id, position)
    else:
        new_parent = nodes[new_parent_id]
        nodes[new_parent_id] = new_parent.model_copy(
            update={"child_ids": _insert_at(new_parent.child_ids, node_id, position)}
        )

    return _with(tree, nodes, root_ids)


def _insert_at(ids: tuple[str, ...], node_id: str, position: int | None) -> tuple[str, ...]:
    index = len(ids) if position is None else max(0, min(position, len(ids)))
    return (*ids[:index], node_id, *ids[index:])


def get_child_nodes(tree: OntologyTree, parent_id: str | None = None) -> list[ConceptNode]:
    """Direct children in display order; the roots when `parent_id` is None.

    Unknown ids have no children.
    """
    if parent_id is None:
        ids = tree.root_ids
    else:
        parent = tree.nodes.get(parent_id)
        ids = parent.child_ids if parent is not None else ()
    return [tree.nodes[i] for i in ids if i in tree.nodes]


def get_descendant_ids(tree: OntologyTree, node_id: str) -> list[str]:
    """Transitive descendants of `node_id` in depth-first display order."""
    start = tree.nodes.get(node_id)
    if start is None:
        return []
    result: list[str] = []
    visited = {node_id}
    stack = list(reversed(start.child_ids))
    while stack:
        current_id = stack.pop()
        if current_id in visited:
            continue
        visited.add(current_id)
        current = tree.nodes.get(current_id)
        if current is None:
            continue
        result.append(current_id)
        stack.extend(reversed(current.child_ids))
    return result


def iter_nodes(tree: OntologyTree) -> Iterator[ConceptNode]:
    """Depth-first walk from the roots, in display order."""
    visited: set[str] = set()
    for root_id in tree.root_ids:
        if root_id in visited or root_id not in tree.nodes:
            continue
        visited.add(root_id)
        yield tree.nodes[root_id]
        for descendant_id in get_descendant_ids(tree, root_id):
            if descendant_id not in visited:
                visited.add(descendant_id)
                yield tree.nodes[descendant_id]


def find_nodes_by_label(tree: OntologyTree, label: str) -> list[ConceptNode]:
    """All concepts whose label equals `label` exactly, in `nodes` order."""
    return [node for node in tree.nodes.values() if node.label == label]


def all_labels(tree: OntologyTree) -> list[str]:
    labels: list[str] = []
    for node in iter_nodes(tree):
        if node.label not in labels:
            labels.append(node.label)
    return labels


def export_to_json(tree: OntologyTree, *, indent: int | None = 2) -> str:
    """Serialize the whole tree: `nodes`, `rootIds` and `updatedAt`."""
    return tree.model_dump_json(by_alias=True, exclude_none=True, indent=indent)


def import_from_json(text: str | bytes) -> OntologyTree:
    """Parse and fully validate a serialized tree.

    Raises `ImportFormatError` if the text is not a tree document or if the
    resulting tree breaks any structural invariant.
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError, RecursionError) as err:
        raise ImportFormatError(f"Ontology document is not valid JSON: {err}") from err

    if not isinstance(data, dict):
        raise ImportFormatError("Ontology document must be a JSON object")
    missing = [key for key in _REQUIRED_DOCUMENT_KEYS if key not in data]
    if missing:
        raise ImportFormatError(f"Ontology document is missing {', '.join(missing)}")

    try:
        tree = OntologyTree.model_validate(data)
    except ValidationError as err:
        first = err.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise ImportFormatError(
            f"Ontology document has {err.error_count()} invalid field(s); first at {location}: {first.get('msg')}"
        ) from err

    validate_tree(tree)
    return tree


def validate_tree(tree: OntologyTree) -> None:
    """Check every structural invariant, raising `ImportFormatError` on the first violation.

    Labels must already be in the stripped, '#'/'@'-prefixed form that
    `normalize_label` produces.
    """
    nodes = tree.nodes

    for key, node in nodes.items():
        if key != node.id:
            raise ImportFormatError(f"Node stored under {key!r} has id {node.id!r}")
        try:
            well_formed = normalize_label(node.label) == node.label
        except InvalidConceptError:
            well_formed = False
        if not well_formed:
            raise ImportFormatError(f"Node {node.id!r} has malformed label {node.label!r}")

    if len(set(tree.root_ids)) != len(tree.root_ids):
        raise ImportFormatError("rootIds contains duplicate ids")
    for root_id in tree.root_ids:
        root = nodes.get(root_id)
        if root is None:
            raise ImportFormatError(f"Root {root_id!r} does not exist")
        if root.parent_id is not None:
            raise ImportFormatError(f"Root {root_id!r} has a parent {root.parent_id!r}")

    root_set = set(tree.root_ids)
    for node in nodes.values():
        if len(set(node.child_ids)) != len(node.child_ids):
            raise ImportFormatError(f"Node {node.id!r} lists a child more than once")
        for child_id in node.child_ids:
            child = nodes.get(child_id)
            if child is None:
                raise ImportFormatError(f"Node {node.id!r} lists missing child {child_id!r}")
            if child.parent_id != node.id:
                raise ImportFormatError(
                    f"Node {node.id!r} lists {child_id!r} whose parent is {child.parent_id!r}"
                )

        if node.parent_id is None:
            if node.id not in root_set:
                raise ImportFormatError(f"Parentless node {node.id!r} is missing from rootIds")
            continue
        parent = nodes.get(node.parent_id)
        if parent is None:
            raise ImportFormatError(f"Node {node.id!r} points to missing parent {node.parent_id!r}")
        if node.id not in parent.child_ids:
            raise ImportFormatError(f"Node {node.id!r} is missing from childIds of {parent.id!r}")

    _check_acyclic(nodes)


def _check_acyclic(nodes: Mapping[str, ConceptNode]) -> None:
    acyclic: set[str] = set()
    for start_id in nodes:
        path: list[str] = []
        on_path: set[str] = set()
        current_id: str | None = start_id
        while current_id is not None and current_id not in acyclic:
            if current_id in on_path:
                raise ImportFormatError(f"Concept {current_id!r} is its own ancestor")
            on_path.add(current_id)
            path.append(current_id)
            current = nodes.get(current_id)
            current_id = current.parent_id if current is not None else None
        acyclic.update(path)


def default_ontology() -> OntologyTree:
    """Starter vocabulary offered on first launch."""
    tree = empty_tree()
    for node in (
        ConceptNode(id="ai", label="#AI"),
        ConceptNode(id="ml", label="#MachineLearning", parent_id="ai"),
        ConceptNode(id="nlp", label="#NLP", parent_id="ai"),
        ConceptNode(id="project", label="#Project", attributes={"due": "date", "status": "text"}),
        ConceptNode(id="person", label="@Person"),
    ):
        tree = add_node(tree, node)
    return tree
