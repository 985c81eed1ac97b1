"""
Category taxonomy and keyword dictionary
Immutable lookup tables handed to the local classifier
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import jsonschema
import yaml

from .categories import ALL_CATEGORIES, CATEGORY_KEYWORDS

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schema" / "tables.schema.json"

ROOT_PARENT = 0


class TaxonomyError(Exception):
    """Raised when a category table file cannot be loaded"""


@dataclass(frozen=True)
class CategoryNode:
    id: int
    name: str
    parent_id: int = ROOT_PARENT

    @property
    def is_root(self) -> bool:
        return self.parent_id == ROOT_PARENT


class Taxonomy:
    """Read-only forest of category nodes keyed by id"""

    def __init__(self, nodes: Iterable[CategoryNode]):
        table: Dict[int, CategoryNode] = {}
        for node in nodes:
            if node.id in table:
                logger.warning(f"Duplicate category id {node.id}, keeping last definition")
            table[node.id] = node
        self._nodes = MappingProxyType(table)

    @classmethod
    def from_rows(cls, rows: Iterable) -> "Taxonomy":
        """Build from (id, name, parent) tuples or dicts.

        Dicts may use ``id`` or ``term_id`` and ``parent`` or ``parent_id``.
        """
        nodes = []
        for row in rows:
            if isinstance(row, dict):
                node_id = row.get("id", row.get("term_id"))
                parent = row.get("parent", row.get("parent_id", ROOT_PARENT))
                nodes.append(CategoryNode(int(node_id), str(row["name"]), int(parent or ROOT_PARENT)))
            else:
                node_id, name, parent = row
                nodes.append(CategoryNode(int(node_id), str(name), int(parent or ROOT_PARENT)))
        return cls(nodes)

    def get(self, category_id: int) -> Optional[CategoryNode]:
        return self._nodes.get(category_id)

    def ancestors(self, category_id: int) -> List[int]:
        """Parent chain of a category, nearest first, roots included.

        The walk stops at the root sentinel or at the first id missing from
        the table. Ids already visited end the walk so a corrupt table with
        a cycle cannot loop forever.
        """
        chain: List[int] = []
        seen = {category_id}
        node = self._nodes.get(category_id)
        while node is not None and not node.is_root:
            parent = node.parent_id
            if parent in seen:
                logger.warning(f"Cycle in taxonomy at category {parent}")
                break
            seen.add(parent)
            chain.append(parent)
            node = self._nodes.get(parent)
        return chain

    def roots(self) -> List[CategoryNode]:
        return [n for n in self._nodes.values() if n.is_root]

    def children(self, category_id: int) -> List[CategoryNode]:
        return [n for n in self._nodes.values() if n.parent_id == category_id]

    def __contains__(self, category_id) -> bool:
        return category_id in self._nodes

    def __iter__(self) -> Iterator[CategoryNode]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)


class KeywordDictionary:
    """Read-only mapping of category id to lowercase keywords, in definition order"""

    def __init__(self, entries: Dict[int, Iterable[str]]):
        table = {}
        for category_id, keywords in entries.items():
            table[int(category_id)] = tuple(kw.lower() for kw in keywords if kw)
        self._entries = MappingProxyType(table)

    def get(self, category_id: int) -> Tuple[str, ...]:
        return self._entries.get(category_id, ())

    def items(self):
        return self._entries.items()

    def unknown_category_ids(self, taxonomy: Taxonomy) -> List[int]:
        """Keyword entries whose category is missing from the taxonomy"""
        return [cid for cid in self._entries if cid not in taxonomy]

    def __contains__(self, category_id) -> bool:
        return category_id in self._entries

    def __iter__(self):
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


def default_tables() -> Tuple[Taxonomy, KeywordDictionary]:
    """Built-in taxonomy and keyword dictionary"""
    return Taxonomy.from_rows(ALL_CATEGORIES), KeywordDictionary(CATEGORY_KEYWORDS)


def _load_schema() -> dict:
    with open(SCHEMA_PATH, "r", encoding="utf-8") as f:
        return json.load(f)


def load_tables(path) -> Tuple[Taxonomy, KeywordDictionary]:
    """Load category tables from a YAML file.

    Expected layout::

        version: 2
        categories:
          - {id: 1, name: Video, parent: 0}
          - {id: 2, name: Asian video, parent: 1}
        keywords:
          2: [asia, asian]
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise TaxonomyError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise TaxonomyError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise TaxonomyError(f"{path} must contain a mapping with a 'categories' list")

    # YAML turns bare numeric keys into ints, the schema expects JSON-style strings
    if isinstance(data.get("keywords"), dict):
        data["keywords"] = {str(k): v for k, v in data["keywords"].items()}

    try:
        jsonschema.validate(instance=data, schema=_load_schema())
    except jsonschema.ValidationError as e:
        raise TaxonomyError(f"Schema validation failed for {path}: {e.message}") from e

    taxonomy = Taxonomy.from_rows(data["categories"])
    keywords = KeywordDictionary(data.get("keywords") or {})

    unknown = keywords.unknown_category_ids(taxonomy)
    if unknown:
        logger.warning(f"Keywords reference unknown categories: {unknown}")

    logger.info(f"Loaded {len(taxonomy)} categories and {len(keywords)} keyword entries from {path}")
    return taxonomy, keywords
