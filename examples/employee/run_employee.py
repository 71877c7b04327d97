"""Example usage of the blockio Python interface."""

from dataclasses import dataclass, field

import blockio
from blockio.blocks import read_entries, read_strings, write_entries, write_strings


@dataclass
class Employee(blockio.Transferable):
    block_name = "Employee"

    id: int = 0
    name: str = ""
    permanent: bool = False
    phone_numbers: list = field(default_factory=list)
    cities: list = field(default_factory=list)
    properties: dict = field(default_factory=dict)

    def write_data(self, writer):
        writer.write_start_block("Employee")
        writer.write_int("id", self.id)
        writer.write_string("name", self.name)
        writer.write_boolean("permanent", self.permanent)
        writer.write_string("phoneNumbers", ",".join(str(p) for p in self.phone_numbers))
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
            phone_numbers=[int(p) for p in reader.read_string("phoneNumbers").split(",")],
            cities=read_strings(reader, "cities", "city"),
            properties=read_entries(reader, "properties"),
        )
        reader.read_end_block()
        return employee


employee = Employee(
    id=22,
    name="No One",
    permanent=True,
    phone_numbers=[1111111111, 2222222222, 9999999999],
    cities=["City A", "City 2", "City C"],
    properties={"hasHair": "true", "dob": "1984-6-8"},
)

# Same value through every backend (format picked from the extension)
for path in ["employee.cfg", "employee.bin", "employee.json", "employee.xml"]:
    blockio.dump(employee, path)
    loaded = blockio.load(path, Employee)
    print(f"{path}: round trip ok = {loaded == employee}")

print()

# In-memory documents
print(blockio.dumps(employee, format="json"))

# Walking a document without knowing its layout
with blockio.open_reader("employee.xml") as reader:
    for depth, element in blockio.iter_elements(reader):
        print("    " * depth + str(element))

print()

# Mismatched names are reported, not skipped
try:
    with blockio.open_reader("employee.cfg") as reader:
        reader.read_start_block("Manager")
except blockio.StructureError as e:
    print(f"Expected error: {e}")
