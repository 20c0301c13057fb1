"""Name-to-record resolution for cross-references between batches."""

from collections.abc import Callable, Iterable
from typing import Generic, TypeVar

from ..config import NameMatch
from ..models.entities import EntityKind
from ..utils.exceptions import ReferenceNotFoundError

T = TypeVar("T")


class NameIndex(Generic[T]):
    """
    Index records of one kind by name.

    Design Decisions:
    - Later records with the same name replace earlier ones, so lookups
      resolve to the most recently seen entity in file order.
    - A miss raises ReferenceNotFoundError instead of returning None, so the
      "reference not found" branch is explicit at every call site.
    """

    def __init__(
        self,
        kind: EntityKind,
        records: Iterable[T] = (),
        key: Callable[[T], str] = lambda record: record.name,  # type: ignore[attr-defined]
        match: NameMatch = NameMatch.EXACT,
    ) -> None:
        """
        Initialize the index.

        Args:
            kind: Entity kind of the indexed records (used in error messages)
            records: Records to index, in file order
            key: Extracts the lookup name from a record
            match: Exact or case-insensitive comparison
        """
        self.kind = kind
        self.match = match
        self._key = key
        self._by_name: dict[str, T] = {}
        for record in records:
            self.add(record)

    def _normalize(self, name: str) -> str:
        if self.match is NameMatch.CASE_INSENSITIVE:
            return name.casefold()
        return name

    def add(self, record: T) -> None:
        """Index a record, replacing any earlier record with the same name."""
        self._by_name[self._normalize(self._key(record))] = record

    def resolve(self, name: str) -> T:
        """
        Resolve a name to a record.

        Args:
            name: Name as it appears in the referencing row

        Returns:
            The most recently indexed record with that name

        Raises:
            ReferenceNotFoundError: If no record has that name
        """
        try:
            return self._by_name[self._normalize(name)]
        except KeyError:
            raise ReferenceNotFoundError(self.kind.value, name) from None

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._normalize(name) in self._by_name

    def __len__(self) -> int:
        return len(self._by_name)
