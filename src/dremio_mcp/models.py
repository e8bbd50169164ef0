# Dremio MCP Lite
# File: models.py
# Version: v2

"""Domain models used by the Dremio MCP server."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Union


@dataclass
class CatalogEntity:
    """A source, space, folder, dataset or file from the Dremio catalog."""

    id: str
    path: List[str] = field(default_factory=list)
    tag: Optional[str] = None
    type: Optional[str] = None
    container_type: Optional[str] = None
    children: Optional[List["CatalogEntity"]] = None

    # Raw JSON payload from the API, for debugging / advanced use.
    raw: Optional[Dict[str, Any]] = None

    @classmethod
    def _from_fields(cls, item: Dict[str, Any]) -> "CatalogEntity":
        raw_path = item.get("path")
        path = [str(p) for p in raw_path] if isinstance(raw_path, list) else []

        return cls(
            id=str(item.get("id") or ""),
            path=path,
            tag=item.get("tag"),
            type=item.get("type") or item.get("entityType"),
            container_type=item.get("containerType"),
            raw=item,
        )

    @classmethod
    def from_payload(cls, item: Dict[str, Any]) -> "CatalogEntity":
        """Build an entity and its whole ``children`` tree.

        Uses an explicit stack, so tree depth is not bounded by the
        interpreter's recursion limit.
        """
        root = cls._from_fields(item)
        stack = [(root, item)]
        while stack:
            entity, payload = stack.pop()
            raw_children = payload.get("children")
            if not isinstance(raw_children, list):
                continue
            entity.children = []
            for child in raw_children:
                if isinstance(child, dict):
                    node = cls._from_fields(child)
                    entity.children.append(node)
                    stack.append((node, child))
        return root

    @property
    def name(self) -> Optional[str]:
        """Last path segment, or None when the entity has no path."""
        return self.path[-1] if self.path else None

    def _fields_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "path": list(self.path),
            "tag": self.tag,
            "type": self.type,
        }
        if self.container_type is not None:
            out["containerType"] = self.container_type
        return out

    def to_dict(self) -> Dict[str, Any]:
        root = self._fields_dict()
        stack = [(self, root)]
        while stack:
            entity, out = stack.pop()
            if entity.children is None:
                continue
            out["children"] = []
            for child in entity.children:
                child_out = child._fields_dict()
                out["children"].append(child_out)
                stack.append((child, child_out))
        return root

    def to_output(self) -> Dict[str, Any]:
        """Backend payload as received, or the modelled fields when there is none."""
        return self.raw if self.raw is not None else self.to_dict()


@dataclass
class CatalogListing:
    """Enveloped catalog response: ``{"data": [entity, ...]}``."""

    entities: List[CatalogEntity]

    def roots(self) -> List[CatalogEntity]:
        return list(self.entities)


CatalogResponse = Union[CatalogEntity, CatalogListing]


def parse_catalog_response(payload: Any) -> CatalogResponse:
    """Turn a raw catalog payload into one of the two known shapes.

    The root catalog endpoint answers with a ``data`` envelope, while a
    by-id or by-path lookup answers with a single entity. Anything that is
    not a JSON object becomes an empty listing.
    """
    if isinstance(payload, dict) and isinstance(payload.get("data"), list):
        return CatalogListing(
            entities=[
                CatalogEntity.from_payload(item)
                for item in payload["data"]
                if isinstance(item, dict)
            ]
        )
    if isinstance(payload, dict):
        return CatalogEntity.from_payload(payload)
    return CatalogListing(entities=[])


def catalog_roots(response: CatalogResponse) -> List[CatalogEntity]:
    if isinstance(response, CatalogListing):
        return response.roots()
    return [response]


def walk_catalog(roots: List[CatalogEntity]) -> Iterator[CatalogEntity]:
    """Depth-first, pre-order walk over catalog entities and their children."""
    stack = list(reversed(roots))
    while stack:
        entity = stack.pop()
        yield entity
        if entity.children:
            stack.extend(reversed(entity.children))


@dataclass
class SchemaField:
    """One output column of a query result.

    ``type`` is passed through as Dremio reports it: usually a mapping such
    as ``{"name": "DECIMAL", "precision": 38, "scale": 2}`` (with
    ``subSchema`` for LIST / STRUCT columns), a plain string on older builds.
    """

    name: str
    type: Any = None

    @classmethod
    def from_payload(cls, item: Dict[str, Any]) -> "SchemaField":
        return cls(name=str(item.get("name") or ""), type=item.get("type"))

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type}


@dataclass
class QueryResult:
    """Materialised rows and column metadata of a completed job."""

    row_count: int = 0
    schema: List[SchemaField] = field(default_factory=list)
    rows: List[Dict[str, Any]] = field(default_factory=list)

    # Extra metadata – job id, requested / effective limits.
    meta: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rowCount": self.row_count,
            "schema": [f.to_dict() for f in self.schema],
            "rows": self.rows,
        }


@dataclass
class ExplainResult:
    """Flattened textual execution plan."""

    text: str
