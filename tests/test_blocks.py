"""Tests for the collection helpers, across every backend."""

import pytest

from blockio import Factory, FormatError, StructureError, open_reader, open_writer
from blockio.blocks import (
    read_block,
    read_entries,
    read_string_array,
    read_strings,
    write_block,
    write_entries,
    write_string_array,
    write_strings,
)

from sample_types import Point, PointFactory, SubWidget, SubWidgetFactory


def make_subs(n):
    return [SubWidget([f"a{i}", ""], f"sub {i}") for i in range(n)]


class GadgetFactory(Factory):
    block_name = "Gadget"

    def encode(self, writer, value):
        writer.write_start_block("Gadget")
        writer.write_int("n", value)
        writer.write_end_block()

    def decode(self, reader):
        reader.read_start_block("Gadget")
        value = reader.read_int("n")
        reader.read_end_block()
        return value


class LeakyFactory(GadgetFactory):
    def encode(self, writer, value):
        writer.write_start_block("Gadget")
        writer.write_int("n", value)


class SilentFactory(GadgetFactory):
    def encode(self, writer, value):
        pass


class DoubleFactory(GadgetFactory):
    def encode(self, writer, value):
        super().encode(writer, value)
        super().encode(writer, value)


class MisnamedFactory(GadgetFactory):
    def encode(self, writer, value):
        writer.write_start_block("Gizmo")
        writer.write_int("n", value)
        writer.write_end_block()


class CountFactory(Factory):
    """One leaf per element."""

    block_name = "count"

    def encode(self, writer, value):
        writer.write_int("count", value)

    def decode(self, reader):
        return reader.read_int("count")


# ---------------------------------------------------------------------------
# write_block / read_block
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("n", [0, 1, 3])
def test_block_round_trip_with_factory(doc_path, n):
    subs = make_subs(n)
    with open_writer(doc_path) as w:
        write_block(w, "subObjs", subs, SubWidgetFactory())
        w.write_int("after", 1)

    with open_reader(doc_path) as r:
        assert read_block(r, "subObjs", SubWidgetFactory()) == subs
        assert r.depth == 0
        assert r.read_int("after") == 1


@pytest.mark.parametrize("n", [0, 1, 3])
def test_block_round_trip_with_transferable(doc_path, n):
    subs = make_subs(n)
    with open_writer(doc_path) as w:
        write_block(w, "subObjs", subs)

    with open_reader(doc_path) as r:
        assert read_block(r, "subObjs", SubWidget) == subs


def test_read_block_appends_into_list(doc_path):
    points = [Point(1.0, 2.0, "a"), Point(-0.5, 1e10, "b")]
    with open_writer(doc_path) as w:
        write_block(w, "points", points, PointFactory())

    existing = [Point(0.0, 0.0, "origin")]
    with open_reader(doc_path) as r:
        result = read_block(r, "points", PointFactory(), into=existing)
    assert result is existing
    assert existing[1:] == points


def test_read_block_checks_entry_names(doc_path):
    with open_writer(doc_path) as w:
        write_block(w, "items", [1, 2], GadgetFactory())

    with pytest.raises(StructureError, match="Expected entry 'SubWidget'"):
        with open_reader(doc_path) as r:
            read_block(r, "items", SubWidgetFactory())


def test_write_block_checks_balance(doc_path):
    with pytest.raises(StructureError, match="depth"):
        with open_writer(doc_path) as w:
            write_block(w, "items", [1], LeakyFactory())


@pytest.mark.parametrize("factory, message", [
    (SilentFactory(), "produced 0 entries"),
    (DoubleFactory(), "produced 2 entries"),
    (MisnamedFactory(), "produced entry 'Gizmo'.*expected 'Gadget'"),
])
def test_write_block_checks_one_entry_per_element(doc_path, factory, message):
    with pytest.raises(StructureError, match=message):
        with open_writer(doc_path) as w:
            write_block(w, "items", [1, 2], factory)


def test_block_of_leaf_entries(doc_path):
    with open_writer(doc_path) as w:
        write_block(w, "counts", [3, 1, 4], CountFactory())
    with open_reader(doc_path) as r:
        assert read_block(r, "counts", CountFactory()) == [3, 1, 4]


def test_read_block_rejects_non_codec(doc_path):
    with open_writer(doc_path) as w:
        write_block(w, "items", [])
    with pytest.raises(TypeError):
        with open_reader(doc_path) as r:
            read_block(r, "items", int)


# ---------------------------------------------------------------------------
# String lists and maps
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("values", [[], ["only"], ["a", "", "c d"]])
def test_strings_round_trip(doc_path, values):
    with open_writer(doc_path) as w:
        write_strings(w, "args", "arg", values)

    with open_reader(doc_path) as r:
        assert read_strings(r, "args", "arg") == values


def test_strings_check_element_name(doc_path):
    with open_writer(doc_path) as w:
        write_strings(w, "args", "arg", ["x"])

    with pytest.raises(StructureError):
        with open_reader(doc_path) as r:
            read_strings(r, "args", "param")


@pytest.mark.parametrize("mapping", [{}, {"hasHair": "true", "dob": "1984-6-8"}])
def test_entries_round_trip(doc_path, mapping):
    with open_writer(doc_path) as w:
        write_entries(w, "properties", mapping)
        w.write_int("after", 2)

    with open_reader(doc_path) as r:
        assert read_entries(r, "properties") == mapping
        assert r.read_int("after") == 2


def test_entries_reject_nested_blocks(doc_path):
    with open_writer(doc_path) as w:
        w.write_start_block("properties")
        w.write_start_block("nested")
        w.write_string("x", "y")
        w.write_end_block()
        w.write_end_block()

    with pytest.raises(StructureError, match="named leaf"):
        with open_reader(doc_path) as r:
            read_entries(r, "properties")


# ---------------------------------------------------------------------------
# Packed string arrays
# ---------------------------------------------------------------------------

def test_string_array_round_trip(doc_path):
    values = ["a", 'q"uote', "back\\slash", ""]
    with open_writer(doc_path) as w:
        write_string_array(w, "arr", values)
        write_string_array(w, "none", [])

    with open_reader(doc_path) as r:
        assert read_string_array(r, "arr") == values
        assert read_string_array(r, "none") == []


def test_string_array_encoding(doc_path):
    with open_writer(doc_path) as w:
        write_string_array(w, "arr", ["a", 'b"c'])

    with open_reader(doc_path) as r:
        assert r.read_string("arr") == '["a", "b\\"c"]'


@pytest.mark.parametrize("text", ["[1, 2]", "not an array", '{"a": "b"}'])
def test_malformed_string_array(doc_path, text):
    with open_writer(doc_path) as w:
        w.write_string("arr", text)

    with open_reader(doc_path) as r:
        with pytest.raises(FormatError):
            read_string_array(r, "arr")


def test_string_array_rejects_non_strings(doc_path):
    with open_writer(doc_path) as w:
        with pytest.raises(FormatError):
            write_string_array(w, "arr", ["a", 1])
