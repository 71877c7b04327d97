"""Tests for the XML backend."""

import io

import pytest

from blockio import DataElement, FormatError, ParseError, XmlReader, XmlWriter


def read_all(text):
    elements = []
    with XmlReader(io.StringIO(text)) as r:
        while r.peek_next() is not None:
            elements.append(r.read_next())
    return elements


def test_writer_output():
    buf = io.StringIO()
    with XmlWriter(buf) as w:
        w.write_start_block("Employee")
        w.write_int("id", 22)
        w.write_string("name", "A & B")
        w.write_start_block("cities")
        w.write_end_block()
        w.write_end_block()

    assert buf.getvalue() == (
        '<?xml version="1.0" encoding="utf-8"?>\n'
        "<archive>\n"
        "    <Employee>\n"
        "        <id>22</id>\n"
        "        <name>A &amp; B</name>\n"
        "        <cities></cities>\n"
        "    </Employee>\n"
        "</archive>\n"
    )


def test_binary_stream_is_left_open():
    buf = io.BytesIO()
    with XmlWriter(buf, root_tag="doc") as w:
        w.write_boolean("flag", True)
    assert not buf.closed
    assert b"<flag>true</flag>" in buf.getvalue()

    buf.seek(0)
    with XmlReader(buf) as r:
        assert r.read_boolean("flag") is True
        assert r.root_tag == "doc"


def test_leaves_and_blocks():
    text = "<archive><a>1</a><b><c>x</c></b><empty/></archive>"
    assert read_all(text) == [
        DataElement.leaf("a", "1"),
        DataElement.start("b"),
        DataElement.leaf("c", "x"),
        DataElement.end("b"),
        DataElement.leaf("empty", ""),
    ]


def test_empty_element_reads_as_empty_block():
    with XmlReader(io.StringIO("<archive><empty/><after>1</after></archive>")) as r:
        r.read_start_block("empty")
        assert r.depth == 1
        assert r.peek_next() == DataElement.end("empty")
        r.read_end_block()
        assert r.read_int("after") == 1


def test_leaf_text_is_exact():
    buf = io.StringIO()
    with XmlWriter(buf) as w:
        w.write_string("s", "  padded\r\n  ")
    with XmlReader(io.StringIO(buf.getvalue())) as r:
        assert r.read_string("s") == "  padded\r\n  "


def test_malformed_document():
    with pytest.raises(ParseError):
        read_all("<archive><a>1</b></archive>")


def test_truncated_document():
    with pytest.raises(ParseError):
        read_all("<archive><a>1</a>")


def test_undecodable_text_source(tmp_path):
    path = tmp_path / "doc.xml"
    path.write_bytes(b"<archive><a>caf\xe9</a></archive>")
    with open(path, encoding="utf-8") as f:
        with pytest.raises(ParseError, match="Invalid text encoding"):
            XmlReader(f).peek_next()


def test_invalid_characters_rejected():
    with XmlWriter(io.StringIO()) as w:
        with pytest.raises(FormatError):
            w.write_string("s", "bell\x07")


def test_invalid_names_rejected():
    with XmlWriter(io.StringIO()) as w:
        with pytest.raises(FormatError):
            w.write_int("1abc", 1)
    with pytest.raises(FormatError):
        XmlWriter(io.StringIO(), root_tag="bad tag")
