"""Tests for the shared reference tables."""

import pytest

from typedbody.core.errors import BadBackreference
from typedbody.core.models import ArchivedObject, ClassDescriptor
from typedbody.core.tables import ArchiveTables, ReferenceTable


def test_declare_returns_sequential_indices() -> None:
    table = ReferenceTable("string")
    assert table.declare("@") == 0
    assert table.declare("+") == 1
    assert table.resolve(1) == "+"
    assert len(table) == 2


def test_out_of_range_reference() -> None:
    table = ReferenceTable("string")
    table.declare("@")
    with pytest.raises(BadBackreference) as info:
        table.resolve(3)
    assert info.value.index == 3
    assert info.value.size == 1


def test_classes_and_objects_share_numbering() -> None:
    tables = ArchiveTables()
    obj = ArchivedObject()
    assert tables.declare_value(obj) == 0
    assert tables.declare_class(ClassDescriptor("NSString", 1)) == 1

    assert tables.resolve_value(0) is obj
    assert tables.resolve_class(1).name == "NSString"


def test_resolving_wrong_kind_is_bad_reference() -> None:
    tables = ArchiveTables()
    tables.declare_value(ArchivedObject())
    tables.declare_class(ClassDescriptor("NSObject"))

    with pytest.raises(BadBackreference):
        tables.resolve_class(0)
    with pytest.raises(BadBackreference):
        tables.resolve_value(1)
