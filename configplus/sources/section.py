"""
Hierarchical Configuration Source

An in-memory key/value tree addressed by section paths. Keys are
case-insensitive and ":" separates hierarchy levels, so the flat key
"Database:TimeoutSeconds" and the nested mapping
{"Database": {"TimeoutSeconds": "60"}} describe the same tree.

Lookup paths may use "." instead of ":" when they contain no ":" at all,
which keeps keys such as "Logging:LogLevel:Microsoft.AspNetCore" reachable.

A section exists when it holds a value (an empty string counts) or has at
least one child. Existence is independent from reading values, which is
what the environment fallback needs.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Final

KEY_DELIMITER: Final[str] = ":"
ALT_KEY_DELIMITER: Final[str] = "."


def split_path(path: str) -> list[str]:
    """Split a section path into its keys.

    Empty segments are dropped so "Database:" and "Database" are equal.
    """
    delimiter = KEY_DELIMITER if KEY_DELIMITER in path else ALT_KEY_DELIMITER
    return [segment for segment in path.split(delimiter) if segment]


def join_path(*segments: str) -> str:
    """Join keys into a canonical section path."""
    return KEY_DELIMITER.join(segment for segment in segments if segment)


@dataclass(slots=True)
class _Node:
    """Tree node. Children are indexed by lowercase key."""

    key: str
    value: str | None = None
    children: dict[str, _Node] = field(default_factory=dict)

    def child(self, key: str) -> _Node | None:
        return self.children.get(key.lower())

    def ensure_child(self, key: str) -> _Node:
        folded = key.lower()
        node = self.children.get(folded)
        if node is None:
            node = _Node(key=key)
            self.children[folded] = node
        return node


def _stringify(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ConfigurationSection:
    """A view on one subtree of a ConfigurationSource.

    Sections are cheap views: requesting a path that does not exist returns
    a section whose exists() is False rather than raising.
    """

    def __init__(self, path: str, node: _Node | None) -> None:
        self._path = path
        self._node = node

    def __repr__(self) -> str:
        return f"ConfigurationSection(path={self._path!r}, exists={self.exists()})"

    @property
    def path(self) -> str:
        """Canonical path of this section."""
        return self._path

    @property
    def key(self) -> str:
        """Last key of the path, as originally cased in the source."""
        if self._node is not None and self._node.key:
            return self._node.key
        segments = split_path(self._path)
        return segments[-1] if segments else ""

    @property
    def value(self) -> str | None:
        """Raw value held directly by this section, if any."""
        return self._node.value if self._node is not None else None

    def exists(self) -> bool:
        """True when the section holds a value or has children."""
        if self._node is None:
            return False
        return self._node.value is not None or bool(self._node.children)

    def get_section(self, key: str) -> ConfigurationSection:
        """Return the child section at a relative path."""
        node = self._node
        segments = split_path(key)
        for segment in segments:
            if node is None:
                break
            node = node.child(segment)
        return ConfigurationSection(join_path(self._path, *segments), node)

    def get(self, key: str, default: str | None = None) -> str | None:
        """Return the raw value at a relative path."""
        value = self.get_section(key).value
        return default if value is None else value

    def get_children(self) -> list[ConfigurationSection]:
        """Return the direct children, in insertion order."""
        if self._node is None:
            return []
        return [
            ConfigurationSection(join_path(self._path, child.key), child)
            for child in self._node.children.values()
        ]

    def __iter__(self) -> Iterator[ConfigurationSection]:
        return iter(self.get_children())

    def to_raw(self) -> str | dict[str, Any] | None:
        """Return the subtree as nested dicts of strings.

        A leaf returns its value; a section with children returns a dict
        keyed by original key case.
        """
        if self._node is None:
            return None
        return _node_to_raw(self._node)


def _node_to_raw(node: _Node) -> str | dict[str, Any] | None:
    if not node.children:
        return node.value
    return {child.key: _node_to_raw(child) for child in node.children.values()}


class ConfigurationSource:
    """Hierarchical configuration source.

    Usage:
        source = ConfigurationSource.from_mapping({
            "Database:ConnectionString": "Server=localhost",
            "Database:TimeoutSeconds": "60",
        })
        source.exists("Database")            # True
        source.get("database:timeoutseconds")  # "60"
    """

    def __init__(self) -> None:
        self._root = _Node(key="")

    def __repr__(self) -> str:
        return f"ConfigurationSource(sections={[c.key for c in self.get_children()]!r})"

    # === CONSTRUCTION ===

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ConfigurationSource:
        """Build a source from flat "Section:Key" -> value pairs."""
        source = cls()
        for key, value in data.items():
            source.set(key, value)
        return source

    @classmethod
    def from_nested(cls, data: Mapping[str, Any]) -> ConfigurationSource:
        """Build a source from nested mappings and lists.

        Lists become index keys ("Hosts:0", "Hosts:1"); scalars are
        stringified, booleans as "true"/"false".
        """
        source = cls()
        source._add_nested(data, [])
        return source

    def _add_nested(self, data: Any, prefix: list[str]) -> None:
        if isinstance(data, Mapping):
            for key, value in data.items():
                self._add_nested(value, [*prefix, str(key)])
        elif isinstance(data, (list, tuple)):
            for index, value in enumerate(data):
                self._add_nested(value, [*prefix, str(index)])
        elif prefix:
            self._set_segments(prefix, _stringify(data))

    def set(self, path: str, value: Any) -> None:
        """Set the value at a flat path, creating parent sections."""
        segments = [segment for segment in path.split(KEY_DELIMITER) if segment]
        if not segments:
            raise ValueError("Configuration key must not be empty")
        self._set_segments(segments, _stringify(value))

    def _set_segments(self, segments: list[str], value: str | None) -> None:
        node = self._root
        for segment in segments:
            node = node.ensure_child(segment)
        node.value = value

    # === LOOKUP ===

    def get_section(self, path: str) -> ConfigurationSection:
        """Return the section at a path; never raises for missing paths."""
        return ConfigurationSection("", self._root).get_section(path)

    def exists(self, path: str) -> bool:
        """True when the section at path exists."""
        return self.get_section(path).exists()

    def get(self, path: str, default: str | None = None) -> str | None:
        """Return the raw value at a path."""
        value = self.get_section(path).value
        return default if value is None else value

    def get_children(self) -> list[ConfigurationSection]:
        """Return the top-level sections."""
        return ConfigurationSection("", self._root).get_children()

    def to_flat(self) -> dict[str, str | None]:
        """Return every leaf as flat "Section:Key" -> value pairs."""
        flat: dict[str, str | None] = {}

        def walk(node: _Node, prefix: str) -> None:
            for child in node.children.values():
                path = join_path(prefix, child.key)
                if child.value is not None or not child.children:
                    flat[path] = child.value
                walk(child, path)

        walk(self._root, "")
        return flat
