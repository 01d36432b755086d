"""Full-text project index and its schema-version guard."""

from glfind.index.guard import IndexVersionGuard, OpenedIndex
from glfind.index.lexical import IndexHit, ProjectIndex

__all__ = ["IndexHit", "IndexVersionGuard", "OpenedIndex", "ProjectIndex"]
