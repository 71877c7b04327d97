"""Tests for the command line tools."""

import blockio
from blockio.__main__ import main, print_tokens

from sample_types import Employee, create_employee


def test_tokens(tmp_path, capsys):
    path = tmp_path / "employee.cfg"
    blockio.dump(create_employee(), path)
    assert main(["tokens", str(path)]) == 0
    out = capsys.readouterr().out
    assert "Employee {" in out
    assert "    id = 22" in out
    assert "        city = 'City A'" in out
    assert "} Employee" in out


def test_tokens_with_format_override(tmp_path, capsys):
    path = tmp_path / "employee.dat"
    blockio.dump(create_employee(), path, format="json")
    assert main(["tokens", "--format", "json", str(path)]) == 0
    assert "name = 'No One'" in capsys.readouterr().out


def test_print_tokens_count(tmp_path):
    path = tmp_path / "employee.json"
    blockio.dump(create_employee(), path)
    # 1 + 6 leaves + cities (2 + 3) + properties (2 + 2) + 1
    assert print_tokens(str(path)) == 17


def test_convert(tmp_path):
    src = tmp_path / "employee.cfg"
    dest = tmp_path / "employee.xml"
    blockio.dump(create_employee(), src)
    assert main(["convert", str(src), str(dest)]) == 0
    assert blockio.load(dest, Employee) == create_employee()


def test_convert_with_target_format(tmp_path):
    src = tmp_path / "employee.bin"
    dest = tmp_path / "employee.dat"
    blockio.dump(create_employee(), src)
    assert main(["-v", "convert", str(src), str(dest), "--to", "json"]) == 0
    assert blockio.load(dest, Employee, format="json") == create_employee()


def test_missing_file_exit_status(tmp_path):
    assert main(["tokens", str(tmp_path / "missing.cfg")]) == 1


def test_malformed_file_exit_status(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text('{"a": ')
    assert main(["tokens", str(path)]) == 1
