"""Tests for DataElement."""

import numpy as np
import pytest

from blockio import DataElement, ElementKind


def test_leaf_constructor():
    e = DataElement.leaf("id", 22)
    assert e.kind is ElementKind.LEAF
    assert e.name == "id"
    assert e.content == 22
    assert e.is_leaf and not e.is_start_block and not e.is_end_block


def test_block_markers_have_no_content():
    start = DataElement.start("cities")
    end = DataElement.end("cities")
    assert start.is_start_block and start.content is None
    assert end.is_end_block and end.content is None


def test_anonymous_entry():
    e = DataElement.leaf(None, "City A")
    assert e.name is None
    assert str(e) == "<anonymous> = 'City A'"


def test_immutable():
    e = DataElement.leaf("id", 22)
    with pytest.raises(AttributeError):
        e.name = "other"


def test_equality():
    assert DataElement.leaf("a", 1) == DataElement.leaf("a", 1)
    assert DataElement.leaf("a", 1) != DataElement.leaf("a", 2)
    assert DataElement.start("a") != DataElement.end("a")
    assert DataElement.start("a") != DataElement.start("b")


def test_equality_with_array_content():
    a = DataElement.leaf("blob", np.array([1, 2, 3]))
    b = DataElement.leaf("blob", np.array([1, 2, 3]))
    c = DataElement.leaf("blob", np.array([1, 2]))
    assert a == b
    assert a != c


def test_hashable():
    elements = {DataElement.start("a"), DataElement.start("a"), DataElement.end("a")}
    assert len(elements) == 2


def test_str():
    assert str(DataElement.start("Employee")) == "Employee {"
    assert str(DataElement.end("Employee")) == "} Employee"
    assert str(DataElement.leaf("name", "No One")) == "name = 'No One'"
