from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, overload

from .descriptor import BuildCommand, DescriptorSpec


@dataclass(frozen=True)
class Application:
    """
    A buildable module of the repository.

    ``path`` is the directory holding the descriptor, relative to the
    repository root (``""`` for the root itself). Two applications are equal
    when their paths are equal.
    """

    path: str
    version: str = field(compare=False)
    name: str = field(compare=False)
    build: Mapping[str, BuildCommand] = field(default_factory=dict, compare=False)
    properties: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "build", MappingProxyType(dict(self.build)))
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    @classmethod
    def from_spec(cls, path: str, version: str, spec: DescriptorSpec) -> "Application":
        return cls(
            path=path,
            version=version,
            name=spec.name,
            build=spec.build,
            properties=spec.properties,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "version": self.version,
            "build": {step: cmd.to_dict() for step, cmd in self.build.items()},
            "properties": dict(self.properties),
        }


class Applications:
    """Ordered, read-only collection of applications."""

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[Application] = ()) -> None:
        self._items: tuple[Application, ...] = tuple(items)

    def __iter__(self) -> Iterator[Application]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    @overload
    def __getitem__(self, index: int) -> Application: ...

    @overload
    def __getitem__(self, index: slice) -> "Applications": ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return Applications(self._items[index])
        return self._items[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Applications):
            return self._items == other._items
        return NotImplemented

    def __repr__(self) -> str:
        return f"Applications({list(self._items)!r})"

    def sorted(self) -> "Applications":
        return Applications(sorted(self._items, key=lambda app: app.path))

    def names(self) -> list[str]:
        return [app.name for app in self._items]

    def by_name(self) -> dict[str, Application]:
        # duplicate names: the application later in path order wins
        return {app.name: app for app in self._items}

    def by_path(self) -> dict[str, Application]:
        return {app.path: app for app in self._items}
