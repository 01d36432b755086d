"""Project index for fuzzy full-text search via Tantivy.

One document per project, keyed by its path (``id``, raw tokenizer), with
``name``, ``path`` and ``description`` as searchable text. A reserved
document (``VERSION_DOC_ID``) carries the schema version; it has no text
and is skipped by enumeration and counting.

Queries are built programmatically rather than parsed, so user input never
needs escaping:

    field(name|path|description) = AND over terms of
        (term OR fuzzy(distance 1) OR prefix)

combined with OR across fields, each field boosted, plus an OR-of-terms
match on the description.
"""

from __future__ import annotations

import math
import re
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog
import tantivy

from glfind.config.constants import (
    FIELD_BOOSTS,
    FUZZY_DISTANCE,
    INDEX_SCHEMA_VERSION,
    SNIPPET_MAX_CHARS,
    VERSION_DOC_ID,
)
from glfind.core.errors import SearchIndexError
from glfind.projects.models import Project

logger = structlog.get_logger()

# Mirrors tantivy's default tokenizer: split on non-alphanumerics, lowercase.
_TERM_RE = re.compile(r"[^\W_]+")

_WRITER_HEAP_BYTES = 50_000_000


def query_terms(query: str) -> list[str]:
    """Split a user query into the terms the default tokenizer would index."""
    return _TERM_RE.findall(query.lower())


def _build_schema() -> Any:
    builder = tantivy.SchemaBuilder()
    # Raw tokenizer: exact id for upserts, deletes and the version marker
    builder.add_text_field("id", stored=True, tokenizer_name="raw")
    builder.add_text_field("path", stored=True, tokenizer_name="default")
    builder.add_text_field("name", stored=True, tokenizer_name="default")
    builder.add_text_field("description", stored=True, tokenizer_name="default")
    builder.add_integer_field("starred", stored=True, indexed=True)
    builder.add_integer_field("archived", stored=True, indexed=True)
    builder.add_integer_field("member", stored=True, indexed=True)
    builder.add_integer_field("version", stored=True, indexed=False)
    return builder.build()


@dataclass(frozen=True, slots=True)
class IndexHit:
    """A raw search hit: normalized score plus the stored project."""

    project: Project
    score: float
    snippet: str = ""


def truncate_description(description: str, max_chars: int = SNIPPET_MAX_CHARS) -> str:
    if len(description) <= max_chars:
        return description
    return description[:max_chars] + "..."


class ProjectIndex:
    """Tantivy-backed project index.

    Use ``create`` or ``open``; ``IndexVersionGuard`` picks between them.

    Usage::

        index = ProjectIndex.create(path)
        index.add_batch(projects)
        hits = index.search("api gate", max_hits=100)
    """

    def __init__(self, index: Any, schema: Any, path: Path) -> None:
        self._index = index
        self._schema = schema
        self.path = path
        self._write_lock = threading.Lock()

    # =========================================================================
    # Open / create
    # =========================================================================

    @staticmethod
    def exists(path: Path) -> bool:
        return path.is_dir() and tantivy.Index.exists(str(path))

    @classmethod
    def create(cls, path: Path, *, version: int = INDEX_SCHEMA_VERSION) -> ProjectIndex:
        """Create an empty index at ``path`` carrying the given version marker."""
        schema = _build_schema()
        try:
            path.mkdir(parents=True, exist_ok=True)
            index = tantivy.Index(schema, path=str(path), reuse=False)
        except (OSError, ValueError) as e:
            raise SearchIndexError.open_failed(str(path), str(e)) from e
        created = cls(index, schema, path)
        created.write_version(version)
        logger.debug("index_created", path=str(path), version=version)
        return created

    @classmethod
    def open(cls, path: Path, *, version: int = INDEX_SCHEMA_VERSION) -> ProjectIndex:
        """Open an existing index, insisting on the expected version marker.

        Raises:
            SearchIndexError: ``not_found`` if nothing is there,
                ``version_mismatch`` if the marker is missing or different
                (including indexes built with another schema),
                ``open_failed`` for anything else.
        """
        if not cls.exists(path):
            raise SearchIndexError.not_found(str(path))
        try:
            existing = tantivy.Index.open(str(path))
        except (OSError, ValueError) as e:
            raise SearchIndexError.open_failed(str(path), str(e)) from e

        found = _read_version(existing, existing.schema)
        if found != version:
            raise SearchIndexError.version_mismatch(found, version)

        schema = _build_schema()
        try:
            index = tantivy.Index(schema, path=str(path), reuse=True)
        except ValueError as e:
            # Marker matches but the on-disk schema does not
            raise SearchIndexError.version_mismatch(found, version) from e
        return cls(index, schema, path)

    # =========================================================================
    # Writes
    # =========================================================================

    @contextmanager
    def _writer(self) -> Iterator[Any]:
        with self._write_lock:
            try:
                writer = self._index.writer(heap_size=_WRITER_HEAP_BYTES, num_threads=1)
            except ValueError as e:
                raise SearchIndexError.write_failed(str(self.path), str(e)) from e
            try:
                yield writer
                writer.commit()
                writer.wait_merging_threads()
            except (OSError, ValueError) as e:
                raise SearchIndexError.write_failed(str(self.path), str(e)) from e
        self._index.reload()

    def _document(self, project: Project) -> Any:
        doc = tantivy.Document()
        doc.add_text("id", project.path)
        doc.add_text("path", project.path)
        doc.add_text("name", project.name)
        doc.add_text("description", project.description)
        doc.add_integer("starred", int(project.starred))
        doc.add_integer("archived", int(project.archived))
        doc.add_integer("member", int(project.member))
        return doc

    def _marker(self, version: int) -> Any:
        doc = tantivy.Document()
        doc.add_text("id", VERSION_DOC_ID)
        doc.add_integer("version", version)
        return doc

    def add(self, project: Project) -> None:
        """Add or replace one project."""
        self.add_batch([project])

    def add_batch(self, projects: Iterable[Project]) -> int:
        """Upsert projects by path in a single commit. Returns how many."""
        count = 0
        with self._writer() as writer:
            for project in projects:
                writer.delete_documents_by_term("id", project.path)
                writer.add_document(self._document(project))
                count += 1
        return count

    def replace_all(self, projects: Iterable[Project]) -> int:
        """Swap the whole catalog in one commit, keeping the version marker."""
        version = self.read_version() or INDEX_SCHEMA_VERSION
        count = 0
        with self._writer() as writer:
            writer.delete_all_documents()
            writer.add_document(self._marker(version))
            for project in projects:
                writer.add_document(self._document(project))
                count += 1
        return count

    def delete(self, project_path: str) -> None:
        with self._writer() as writer:
            writer.delete_documents_by_term("id", project_path)

    def write_version(self, version: int) -> None:
        with self._writer() as writer:
            writer.delete_documents_by_term("id", VERSION_DOC_ID)
            writer.add_document(self._marker(version))

    def read_version(self) -> int | None:
        return _read_version(self._index, self._schema)

    def reload(self) -> None:
        self._index.reload()

    # =========================================================================
    # Reads
    # =========================================================================

    def count(self) -> int:
        """Number of projects; the version marker is not counted."""
        searcher = self._index.searcher()
        marker = self._marker_query()
        has_marker = searcher.search(marker, limit=1).count > 0
        return int(searcher.num_docs) - (1 if has_marker else 0)

    def all_projects(self) -> list[Project]:
        """Every stored project, ordered by path."""
        searcher = self._index.searcher()
        limit = max(int(searcher.num_docs), 1)
        projects = []
        for _score, addr in searcher.search(tantivy.Query.all_query(), limit=limit).hits:
            doc = searcher.doc(addr)
            if doc.get_first("id") == VERSION_DOC_ID:
                continue
            projects.append(_project_from_doc(doc))
        projects.sort(key=lambda p: p.path)
        return projects

    def search(self, query: str, max_hits: int) -> list[IndexHit]:
        """Fuzzy search over name, path and description.

        Scores are tantivy scores divided by ``sqrt(sum(boost**2)) * term_count``
        so a strong single-field match lands around 1.0.

        Raises:
            SearchIndexError: If the index cannot be queried.
        """
        terms = query_terms(query)
        if not terms:
            return []
        norm = math.sqrt(sum(b * b for b in FIELD_BOOSTS.values())) * len(terms)

        try:
            compiled = self._build_query(terms)
            searcher = self._index.searcher()
            hits = searcher.search(compiled, limit=max_hits).hits
            snippets = tantivy.SnippetGenerator.create(
                searcher, compiled, self._schema, "description"
            )
            snippets.set_max_num_chars(SNIPPET_MAX_CHARS)
            results: list[IndexHit] = []
            for score, addr in hits:
                doc = searcher.doc(addr)
                if doc.get_first("id") == VERSION_DOC_ID:
                    continue
                project = _project_from_doc(doc)
                results.append(
                    IndexHit(
                        project=project,
                        score=float(score) / norm,
                        snippet=_snippet(snippets, doc, project.description),
                    )
                )
        except ValueError as e:
            raise SearchIndexError.query_failed(query, str(e)) from e
        return results

    def _marker_query(self) -> Any:
        return tantivy.Query.term_query(self._schema, "id", VERSION_DOC_ID)

    def _term_alternatives(self, field: str, term: str) -> Any:
        q = tantivy.Query
        return q.boolean_query(
            [
                # Exact term carries the BM25 signal; fuzzy and prefix score flat
                (tantivy.Occur.Should, q.term_query(self._schema, field, term)),
                (
                    tantivy.Occur.Should,
                    q.fuzzy_term_query(
                        self._schema, field, term, distance=FUZZY_DISTANCE, transposition_cost_one=True
                    ),
                ),
                (
                    tantivy.Occur.Should,
                    q.fuzzy_term_query(self._schema, field, term, distance=0, prefix=True),
                ),
            ]
        )

    def _build_query(self, terms: list[str]) -> Any:
        q = tantivy.Query
        clauses = []
        for field, boost in FIELD_BOOSTS.items():
            all_terms = q.boolean_query(
                [(tantivy.Occur.Must, self._term_alternatives(field, t)) for t in terms]
            )
            clauses.append((tantivy.Occur.Should, q.boost_query(all_terms, boost)))
        any_term = q.boolean_query(
            [(tantivy.Occur.Should, q.term_query(self._schema, "description", t)) for t in terms]
        )
        clauses.append((tantivy.Occur.Should, any_term))
        return q.boolean_query(clauses)


def _read_version(index: Any, schema: Any) -> int | None:
    try:
        marker = tantivy.Query.term_query(schema, "id", VERSION_DOC_ID)
    except ValueError:
        # No "id" field: built by an older schema
        return None
    searcher = index.searcher()
    hits = searcher.search(marker, limit=1).hits
    if not hits:
        return None
    value = searcher.doc(hits[0][1]).get_first("version")
    return int(value) if value is not None else None


def _project_from_doc(doc: Any) -> Project:
    return Project(
        path=doc.get_first("id") or "",
        name=doc.get_first("name") or "",
        description=doc.get_first("description") or "",
        starred=bool(doc.get_first("starred") or 0),
        archived=bool(doc.get_first("archived") or 0),
        member=bool(doc.get_first("member") or 0),
    )


def _snippet(generator: Any, doc: Any, description: str) -> str:
    if not description:
        return ""
    snippet = generator.snippet_from_doc(doc)
    if snippet.highlighted():
        return str(snippet.fragment())
    return truncate_description(description)
