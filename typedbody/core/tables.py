"""Back-reference tables populated while decoding one archive."""

from typing import Generic, List, TypeVar

from .errors import BadBackreference
from .models import ArchivedObject, ClassDescriptor

T = TypeVar("T")


class ReferenceTable(Generic[T]):
    """Append-only table; entry i is what a back-reference to i resolves to."""

    def __init__(self, name: str):
        self.name = name
        self._entries: List[T] = []

    def declare(self, entry: T) -> int:
        self._entries.append(entry)
        return len(self._entries) - 1

    def resolve(self, index: int) -> T:
        if not 0 <= index < len(self._entries):
            raise BadBackreference(self.name, index, len(self._entries))
        return self._entries[index]

    def __len__(self):
        return len(self._entries)


class ArchiveTables:
    """
    The two shared tables of a typedstream.

    Type encodings and class names live in the string table. Class
    descriptors and object instances share one numbering on the wire, so
    they live together in the object table and are told apart on resolve.
    """

    def __init__(self):
        self.strings: ReferenceTable[str] = ReferenceTable("string")
        self.objects: ReferenceTable = ReferenceTable("object")

    def declare_string(self, value: str) -> int:
        return self.strings.declare(value)

    def resolve_string(self, index: int) -> str:
        return self.strings.resolve(index)

    def declare_class(self, descriptor: ClassDescriptor) -> int:
        return self.objects.declare(descriptor)

    def resolve_class(self, index: int) -> ClassDescriptor:
        entry = self.objects.resolve(index)
        if not isinstance(entry, ClassDescriptor):
            raise BadBackreference("class", index, len(self.objects))
        return entry

    def declare_value(self, value: ArchivedObject) -> int:
        return self.objects.declare(value)

    def resolve_value(self, index: int) -> ArchivedObject:
        entry = self.objects.resolve(index)
        if not isinstance(entry, ArchivedObject):
            raise BadBackreference("value", index, len(self.objects))
        return entry
