"""Application types used by the tests: self-describing values and factories."""

from dataclasses import dataclass, field
from typing import NamedTuple

from blockio import Factory, StructureError, Transferable
from blockio.blocks import (
    read_block,
    read_entries,
    read_strings,
    write_block,
    write_entries,
    write_strings,
)


@dataclass
class Employee(Transferable):
    block_name = "Employee"

    id: int = 0
    name: str = ""
    permanent: bool = False
    address: str = ""
    phone_numbers: list = field(default_factory=list)
    role: str = ""
    cities: list = field(default_factory=list)
    properties: dict = field(default_factory=dict)

    def write_data(self, writer):
        writer.write_start_block("Employee")
        writer.write_int("id", self.id)
        writer.write_string("name", self.name)
        writer.write_boolean("permanent", self.permanent)
        writer.write_string("address", self.address)
        writer.write_string("phoneNumbers", ",".join(str(p) for p in self.phone_numbers))
        writer.write_string("role", self.role)
        write_strings(writer, "cities", "city", self.cities)
        write_entries(writer, "properties", self.properties)
        writer.write_end_block()

    @classmethod
    def read_data(cls, reader):
        reader.read_start_block("Employee")
        employee = cls(
            id=reader.read_int("id"),
            name=reader.read_string("name"),
            permanent=reader.read_boolean("permanent"),
            address=reader.read_string("address"),
            phone_numbers=[int(p) for p in reader.read_string("phoneNumbers").split(",") if p],
            role=reader.read_string("role"),
            cities=read_strings(reader, "cities", "city"),
            properties=read_entries(reader, "properties"),
        )
        reader.read_end_block()
        return employee


def create_employee() -> Employee:
    return Employee(
        id=22,
        name="No One",
        permanent=True,
        address="Street-Name, City, 01234",
        phone_numbers=[1111111111, 2222222222, 9999999999],
        role="designer",
        cities=["City A", "City 2", "City C"],
        properties={"hasHair": "true", "dob": "1984-6-8"},
    )


@dataclass
class SubWidget(Transferable):
    block_name = "SubWidget"

    arguments: list = field(default_factory=list)
    description: str = ""

    def write_data(self, writer):
        SubWidgetFactory().encode(writer, self)

    @classmethod
    def read_data(cls, reader):
        return SubWidgetFactory().decode(reader)


class SubWidgetFactory(Factory):
    block_name = "SubWidget"
    supports_reload = True

    def encode(self, writer, value):
        writer.write_start_block("SubWidget")
        write_strings(writer, "args", "arg", value.arguments)
        writer.write_string("description", value.description or "")
        writer.write_end_block()

    def decode(self, reader):
        return self.decode_into(reader, SubWidget())

    def decode_into(self, reader, value):
        reader.read_start_block("SubWidget")
        value.arguments = read_strings(reader, "args", "arg")
        value.description = reader.read_string("description")
        reader.read_end_block()
        return value


@dataclass
class Widget(Transferable):
    block_name = "Widget"

    name: str = ""
    id: int = 0
    sub_widgets: list = field(default_factory=list)
    type: str = "str"

    def write_data(self, writer):
        writer.write_start_block("Widget")
        writer.write_string("name", self.name)
        writer.write_start_block("meta-data")
        writer.write_string("type", self.type)
        writer.write_boolean("bool", True)
        writer.write_end_block()
        writer.write_int("id", self.id)
        writer.write_int("count", len(self.sub_widgets))
        write_block(writer, "subObjs", self.sub_widgets, SubWidgetFactory())
        writer.write_end_block()

    @classmethod
    def read_data(cls, reader):
        widget = cls()
        reader.read_start_block("Widget")
        widget.name = reader.read_string("name")
        reader.read_start_block("meta-data")
        widget.type = reader.read_string("type")
        reader.read_boolean("bool")
        reader.read_end_block()
        widget.id = reader.read_int("id")
        count = reader.read_int("count")
        widget.sub_widgets = read_block(reader, "subObjs", SubWidgetFactory())
        if len(widget.sub_widgets) != count:
            raise StructureError(
                f"expected {count} sub objects, only parsed {len(widget.sub_widgets)}"
            )
        reader.read_end_block()
        return widget


def create_widget(num_subs: int = 2) -> Widget:
    subs = [
        SubWidget([f"arg{i}", f"--flag={i}"], f"sub widget {i}") for i in range(num_subs)
    ]
    return Widget("gear", 7, subs)


class Point(NamedTuple):
    x: float
    y: float
    label: str


class PointFactory(Factory):
    """Immutable values: no reload."""

    block_name = "Point"

    def encode(self, writer, value):
        writer.write_start_block("Point")
        writer.write_double("x", value.x)
        writer.write_double("y", value.y)
        writer.write_string("label", value.label)
        writer.write_end_block()

    def decode(self, reader):
        reader.read_start_block("Point")
        point = Point(reader.read_double("x"), reader.read_double("y"), reader.read_string("label"))
        reader.read_end_block()
        return point
