"""Singer catalog and metadata structures.

A catalog lists the streams a tap can emit. Each entry carries the stream's
JSON Schema and a list of metadata objects addressed by *breadcrumbs*: the
empty breadcrumb ``()`` addresses the stream itself and
``("properties", "id")`` addresses a property of it.
"""

from __future__ import annotations

import enum
import logging
import typing as t
from dataclasses import dataclass, field, fields

from singer_protocol.messages import exclude_null_dict

__all__ = [
    "Breadcrumb",
    "Catalog",
    "CatalogEntry",
    "InclusionType",
    "Metadata",
    "MetadataMapping",
    "SelectionMask",
    "StreamMetadata",
]

Breadcrumb = t.Tuple[str, ...]

logger = logging.getLogger(__name__)


def _parent(breadcrumb: Breadcrumb) -> Breadcrumb:
    # ("properties", "a", "properties", "b") -> ("properties", "a")
    return breadcrumb[:-2]


class SelectionMask(t.Dict[Breadcrumb, bool]):
    """Resolved selection of a stream and its properties.

    Breadcrumbs without an entry take the selection of their closest ancestor;
    the stream itself is selected unless the mask says otherwise.
    """

    def __missing__(self, breadcrumb: Breadcrumb) -> bool:
        if not breadcrumb:
            return True
        return self[_parent(breadcrumb)]


class InclusionType(str, enum.Enum):
    """How a stream or property takes part in a sync."""

    AVAILABLE = "available"
    AUTOMATIC = "automatic"
    UNSUPPORTED = "unsupported"


def _wire_name(attribute: str) -> str:
    return attribute.replace("_", "-")


@dataclass
class Metadata:
    """Selection metadata of a property.

    On the wire, attribute names are kebab-cased: ``selected_by_default`` is
    written as ``selected-by-default``.
    """

    inclusion: InclusionType | None = None
    selected: bool | None = None
    selected_by_default: bool | None = None

    @classmethod
    def from_dict(cls: type[_M], value: dict[str, t.Any]) -> _M:
        """Read metadata from its wire form.

        Unknown keys are ignored.

        Args:
            value: The ``metadata`` object of a metadata entry.

        Returns:
            The metadata.
        """
        kwargs = {f.name: value.get(_wire_name(f.name)) for f in fields(cls)}
        if kwargs["inclusion"] is not None:
            kwargs["inclusion"] = InclusionType(kwargs["inclusion"])
        return cls(**kwargs)

    def to_dict(self) -> dict[str, t.Any]:
        """Get the wire form, leaving out unset attributes."""
        wire: dict[str, t.Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            wire[_wire_name(f.name)] = (
                value.value if isinstance(value, enum.Enum) else value
            )
        return wire


_M = t.TypeVar("_M", bound=Metadata)


@dataclass
class StreamMetadata(Metadata):
    """Metadata of the stream itself, found at the empty breadcrumb."""

    table_key_properties: list[str] | None = None
    forced_replication_method: str | None = None
    valid_replication_keys: list[str] | None = None
    replication_method: str | None = None
    replication_key: str | None = None
    view_key_properties: list[str] | None = None
    schema_name: str | None = None
    database_name: str | None = None
    is_view: bool | None = None
    row_count: int | None = None


AnyMetadata = t.Union[Metadata, StreamMetadata]


class MetadataMapping(t.Dict[Breadcrumb, AnyMetadata]):
    """Metadata of one stream, keyed by breadcrumb.

    Looking up a breadcrumb with no entry creates an empty one.
    """

    @classmethod
    def from_iterable(
        cls: type[MetadataMapping],
        iterable: t.Iterable[dict[str, t.Any]],
    ) -> MetadataMapping:
        """Build the mapping from a catalog entry's ``metadata`` list.

        Args:
            iterable: Objects with a ``breadcrumb`` and a ``metadata`` key.

        Returns:
            The metadata mapping.
        """
        mapping = cls()
        for item in iterable:
            breadcrumb = tuple(item["breadcrumb"])
            kind = StreamMetadata if not breadcrumb else Metadata
            mapping[breadcrumb] = kind.from_dict(item["metadata"])
        return mapping

    def to_list(self) -> list[dict[str, t.Any]]:
        """Get the wire form, a list of breadcrumb and metadata objects."""
        return [
            {"breadcrumb": list(breadcrumb), "metadata": metadata.to_dict()}
            for breadcrumb, metadata in self.items()
        ]

    def __missing__(self, breadcrumb: Breadcrumb) -> AnyMetadata:
        entry = Metadata() if breadcrumb else StreamMetadata()
        self[breadcrumb] = entry
        return entry

    @property
    def root(self) -> StreamMetadata:
        """Metadata of the stream itself."""
        return t.cast(StreamMetadata, self[()])

    def resolve_selection(self) -> SelectionMask:
        """Decide which of the mapped breadcrumbs are selected.

        A property is never selected when its parent is not. Otherwise
        ``inclusion`` wins over ``selected``, which wins over
        ``selected-by-default``; a property with none of these follows its
        parent.

        Returns:
            The selection of every breadcrumb in the mapping.
        """
        if not self:
            return SelectionMask()

        resolved: dict[Breadcrumb, bool] = {}
        return SelectionMask(
            (breadcrumb, self._resolve(breadcrumb, resolved)) for breadcrumb in self
        )

    def _resolve(
        self,
        breadcrumb: Breadcrumb,
        resolved: dict[Breadcrumb, bool],
    ) -> bool:
        if breadcrumb in resolved:
            return resolved[breadcrumb]

        parent = self._resolve(_parent(breadcrumb), resolved) if breadcrumb else None
        # `get` rather than indexing, to not create entries while resolving.
        entry = self.get(breadcrumb) or Metadata()
        resolved[breadcrumb] = _decide(breadcrumb, entry, parent_selected=parent)
        return resolved[breadcrumb]


def _decide(
    breadcrumb: Breadcrumb,
    entry: Metadata,
    *,
    parent_selected: bool | None,
) -> bool:
    if parent_selected is False:
        return False

    path = ":".join(breadcrumb)
    if entry.inclusion is InclusionType.UNSUPPORTED:
        if entry.selected:
            logger.debug(
                "Property '%s' was selected but is not supported, ignoring",
                path,
            )
        return False

    if entry.inclusion is InclusionType.AUTOMATIC:
        if entry.selected is False:
            logger.debug(
                "Property '%s' is included automatically, ignoring deselection",
                path,
            )
        return True

    if entry.selected is not None:
        return entry.selected
    if entry.selected_by_default is not None:
        return entry.selected_by_default

    return bool(parent_selected)


# Attribute name -> wire name, where they differ.
_ENTRY_WIRE_NAMES = {"database": "database_name", "table": "table_name"}


@dataclass
class CatalogEntry:
    """One stream of a catalog."""

    tap_stream_id: str
    schema: dict[str, t.Any]
    metadata: MetadataMapping = field(default_factory=MetadataMapping)
    stream: str | None = None
    """Stream name used in messages, when it differs from ``tap_stream_id``."""

    key_properties: list[str] | None = None
    replication_key: str | None = None
    replication_method: str | None = None
    is_view: bool | None = None
    database: str | None = None
    table: str | None = None
    row_count: int | None = None
    stream_alias: str | None = None

    @classmethod
    def from_dict(cls: type[CatalogEntry], stream: dict[str, t.Any]) -> CatalogEntry:
        """Read an entry of a catalog's ``streams`` list.

        Args:
            stream: The entry's JSON object.

        Returns:
            The catalog entry.

        Raises:
            KeyError: If ``tap_stream_id`` is missing.
        """
        optional = {
            f.name: stream.get(_ENTRY_WIRE_NAMES.get(f.name, f.name))
            for f in fields(cls)
            if f.name not in {"tap_stream_id", "schema", "metadata"}
        }
        return cls(
            tap_stream_id=stream["tap_stream_id"],
            schema=stream.get("schema", {}),
            metadata=MetadataMapping.from_iterable(stream.get("metadata", [])),
            **optional,
        )

    def to_dict(self) -> dict[str, t.Any]:
        """Get the entry's JSON object, leaving out unset attributes."""
        wire = exclude_null_dict(
            (_ENTRY_WIRE_NAMES.get(f.name, f.name), getattr(self, f.name))
            for f in fields(self)
            if f.name != "metadata"
        )
        wire["metadata"] = self.metadata.to_list()
        return wire

    @property
    def is_selected(self) -> bool:
        """Whether the stream itself is selected."""
        return self.metadata.resolve_selection()[()]


class Catalog(t.Dict[str, CatalogEntry]):
    """Catalog entries keyed by ``tap_stream_id``."""

    @classmethod
    def from_dict(
        cls: type[Catalog],
        data: dict[str, list[dict[str, t.Any]]],
    ) -> Catalog:
        """Read a catalog from its JSON object.

        Args:
            data: An object with a ``streams`` list.

        Returns:
            The catalog.
        """
        catalog = cls()
        for stream in data.get("streams", []):
            catalog.add_stream(CatalogEntry.from_dict(stream))
        return catalog

    def to_dict(self) -> dict[str, t.Any]:
        """Get the catalog's JSON object."""
        return {"streams": [entry.to_dict() for entry in self.streams]}

    @property
    def streams(self) -> list[CatalogEntry]:
        """The entries, in insertion order."""
        return list(self.values())

    def add_stream(self, entry: CatalogEntry) -> None:
        """Add an entry, replacing any entry with the same ``tap_stream_id``.

        Args:
            entry: The catalog entry.
        """
        self[entry.tap_stream_id] = entry

    def get_stream(self, stream_id: str) -> CatalogEntry | None:
        """Look up an entry.

        Args:
            stream_id: The ``tap_stream_id`` of the entry.

        Returns:
            The entry, or None if the catalog has no such stream.
        """
        return self.get(stream_id)
