from typing import Iterable, Iterator, List, Optional, Sequence

from cabinet.errors import ResolverNotFoundError
from cabinet.models import ResolverEntry, Strategy


class ResolverRegistry:
    """
    Ordered list of resolution strategies.

    Order matters: the first entry that returns a path wins. Entries added
    through :meth:`register` go to the front so they take priority over the
    built-in ones.
    """

    def __init__(self, entries: Iterable[ResolverEntry] = ()):
        self._entries: List[ResolverEntry] = []
        self._extensions: List[str] = []
        for entry in entries:
            self.append(entry)

    def __iter__(self) -> Iterator[ResolverEntry]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def names(self) -> list[str]:
        return [e.name for e in self._entries]

    @property
    def supported_extensions(self) -> list[str]:
        return list(self._extensions)

    def _track_extensions(self, extensions: Sequence[str]) -> None:
        for ext in extensions:
            if ext not in self._extensions:
                self._extensions.append(ext)

    def append(self, entry: ResolverEntry) -> None:
        self._entries.append(entry)
        self._track_extensions(entry.extensions)

    def register(self, extension: str, strategy: Strategy, name: str = "custom") -> ResolverEntry:
        """Insert *strategy* for *extension* in front of every other entry."""
        entry = ResolverEntry(name=name, extensions=(extension,), strategy=strategy)
        self._entries.insert(0, entry)
        self._track_extensions(entry.extensions)
        return entry

    def get(self, name: str) -> Optional[ResolverEntry]:
        return next((e for e in self._entries if e.name == name), None)

    def promote(self, name: str) -> None:
        """Move the first entry called *name* to the front."""
        for idx, entry in enumerate(self._entries):
            if entry.name == name:
                if idx:
                    self._entries.insert(0, self._entries.pop(idx))
                return
        raise ResolverNotFoundError(name)

    def match(self, extensions: Sequence[str]) -> list[ResolverEntry]:
        """Entries handling any of *extensions*, in registry order."""
        return [e for e in self._entries if e.handles(extensions)]
