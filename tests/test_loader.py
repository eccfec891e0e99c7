"""
Intcode VM — Program Loading Tests
"""

import pytest

from intcode_vm import run_source
from intcode_vm.errors import ProgramFormatError
from intcode_vm.loader import format_program, load_program, parse_program, patch


class TestParse:
    def test_basic(self):
        assert parse_program("1,0,0,3,99") == [1, 0, 0, 3, 99]

    def test_whitespace_and_newline(self):
        assert parse_program(" 1, -2 ,3\n") == [1, -2, 3]

    def test_trailing_comma(self):
        assert parse_program("104,7,99,") == [104, 7, 99]

    def test_big_values(self):
        assert parse_program("104,1125899906842624,99")[1] == 1125899906842624

    def test_bad_field(self):
        with pytest.raises(ProgramFormatError) as exc:
            parse_program("1,2,x,4")
        assert exc.value.field == 2

    def test_empty(self):
        with pytest.raises(ProgramFormatError):
            parse_program("  \n")

    def test_format(self):
        assert format_program([1, -2, 99]) == "1,-2,99"


class TestLoadFile:
    def test_load(self, tmp_path):
        path = tmp_path / "prog.txt"
        path.write_text("3,0,4,0,99\n", encoding="utf-8")
        assert load_program(path) == [3, 0, 4, 0, 99]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_program(tmp_path / "nope.txt")


class TestPatch:
    def test_patch_copies(self):
        image = [1, 0, 0, 0, 99]
        patched = patch(image, 12, 2)
        assert patched == [1, 12, 2, 0, 99]
        assert image == [1, 0, 0, 0, 99]

    def test_patch_noun_only(self):
        assert patch([1, 0, 0, 0, 99], noun=5) == [1, 5, 0, 0, 99]

    def test_patch_short_image(self):
        assert patch([99], verb=7) == [99, 0, 7]
        assert patch([99]) == [99]


class TestRunSource:
    def test_run_source(self):
        assert run_source("3,0,4,0,99", [17]) == [17]

    def test_run_source_word_profile(self):
        assert run_source("104,1125899906842624,99", word="i64") == [1125899906842624]
