"""
Manifest data model for peerkeeper.

A :class:`Manifest` wraps the parsed ``package.json`` document. Only the
two dependency sections are interpreted; every other field is carried
through untouched so that writing the manifest back does not lose data.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple


class DependencyClass(str, Enum):
    """Dependency section of a manifest, valued by its JSON key."""

    DIRECT = "dependencies"
    DEV = "devDependencies"


#: Lookup order used for every write-back.
WRITE_PRECEDENCE: Tuple[DependencyClass, ...] = (
    DependencyClass.DIRECT,
    DependencyClass.DEV,
)


class Manifest:
    """In-memory ``package.json`` with dependency-aware accessors.

    Args:
        document: Parsed JSON object. It is owned by the manifest and
            mutated in place by the setters.

    Example::

        >>> manifest = Manifest({"dependencies": {"react": "18.2.0"}})
        >>> manifest.get_range("react")
        '18.2.0'
        >>> manifest.set_target_version("react", "^19.1.0")
        <DependencyClass.DIRECT: 'dependencies'>
    """

    __slots__ = ("_document",)

    def __init__(self, document: Optional[Dict[str, Any]] = None) -> None:
        self._document: Dict[str, Any] = document if document is not None else {}

    def __repr__(self) -> str:
        return (
            f"Manifest(dependencies={self.dependencies!r}, "
            f"devDependencies={self.dev_dependencies!r})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Manifest):
            return NotImplemented
        return self._document == other._document

    # ------------------------------------------------------------------
    # Section access
    # ------------------------------------------------------------------

    def section(self, dep_class: DependencyClass) -> Dict[str, str]:
        """Return the mapping for ``dep_class`` (empty if missing)."""
        return self._document.get(dep_class.value) or {}

    @property
    def dependencies(self) -> Dict[str, str]:
        return self.section(DependencyClass.DIRECT)

    @property
    def dev_dependencies(self) -> Dict[str, str]:
        return self.section(DependencyClass.DEV)

    def all_dependencies(self) -> Dict[str, str]:
        """Merge direct and dev dependencies into one ordered mapping.

        Names keep the position of their first appearance; when a name is
        declared in both sections the dev range wins, like an object
        spread of ``dependencies`` followed by ``devDependencies``.
        """
        merged: Dict[str, str] = dict(self.dependencies)
        merged.update(self.dev_dependencies)
        return merged

    def iter_dependencies(self) -> Iterator[Tuple[str, str]]:
        yield from self.all_dependencies().items()

    def class_of(self, name: str) -> Optional[DependencyClass]:
        """Return the section holding ``name``, direct first."""
        for dep_class in WRITE_PRECEDENCE:
            if self.section(dep_class).get(name):
                return dep_class
        return None

    def get_range(self, name: str) -> Optional[str]:
        return self.all_dependencies().get(name)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def set_target_version(self, name: str, value: str) -> DependencyClass:
        """Write the target package's new range.

        Goes to the section already holding ``name`` (direct preferred);
        a package declared nowhere is added to ``dependencies``.

        Returns:
            The section that was written.
        """
        dep_class = self.class_of(name) or DependencyClass.DIRECT
        self._document.setdefault(dep_class.value, {})
        if self._document[dep_class.value] is None:
            self._document[dep_class.value] = {}
        self._document[dep_class.value][name] = value
        return dep_class

    def set_dependency_version(self, name: str, value: str) -> Optional[DependencyClass]:
        """Rewrite an existing dependency entry.

        Unlike :meth:`set_target_version`, a name declared in neither
        section is left alone.

        Returns:
            The section that was written, or ``None``.
        """
        dep_class = self.class_of(name)
        if dep_class is None:
            return None
        self._document[dep_class.value][name] = value
        return dep_class

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Return the underlying document (not a copy)."""
        return self._document
