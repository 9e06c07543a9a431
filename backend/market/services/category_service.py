# backend/market/services/category_service.py
"""
Category tree reads.

The closure of a category (itself plus every descendant) is resolved per
call; nothing is cached across requests so edits to the tree show up on the
next read.
"""
from __future__ import annotations

from ..extensions import db
from ..models import Category


def get_category_closure(category_id: int) -> set[int]:
    """
    Return the ids of category_id and all of its descendants.

    Expands one tree level per query (children of the current frontier) until
    a level yields nothing new. There is no depth limit. An id is never
    expanded twice, so the walk also terminates if the data ever contains a
    cycle. Unknown ids resolve to an empty set.
    """
    exists = db.session.query(Category.id).filter(Category.id == category_id).first()
    if exists is None:
        return set()

    closure = {category_id}
    frontier = {category_id}
    while frontier:
        rows = (
            db.session.query(Category.id)
            .filter(Category.parent_id.in_(frontier))
            .all()
        )
        frontier = {row.id for row in rows} - closure
        closure |= frontier
    return closure


def list_categories() -> list[dict]:
    categories = db.session.query(Category).order_by(Category.id.asc()).all()
    return [c.to_dict() for c in categories]


def get_category_tree() -> list[dict]:
    """Nested {id, name, parent_id, children: [...]} forest for navigation menus."""
    categories = db.session.query(Category).order_by(Category.id.asc()).all()

    nodes = {c.id: {**c.to_dict(), "children": []} for c in categories}
    roots = []
    for c in categories:
        node = nodes[c.id]
        parent = nodes.get(c.parent_id) if c.parent_id is not None else None
        if parent is None:
            roots.append(node)
        else:
            parent["children"].append(node)
    return roots
