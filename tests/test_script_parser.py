import pytest

from automedia.application.script_parser import (
    image_filename_for,
    parse_script,
    parse_script_file,
    sanitize_filename,
)
from automedia.domain.errors import ScriptParseError
from automedia.domain.models import LineStatus


class TestParseScript:
    def test_one_record_per_non_blank_line_in_order(self):
        lines = parse_script("first|a\n\n   \nsecond|b\nthird|c\n")
        assert [l.spoken_text for l in lines] == ["first", "second", "third"]
        assert [l.id for l in lines] == ["line-0", "line-1", "line-2"]

    def test_splits_on_first_delimiter_only(self):
        (line,) = parse_script("  Hello world  |  a sunrise | over hills  ")
        assert line.spoken_text == "Hello world"
        assert line.image_prompt == "a sunrise | over hills"
        assert line.original_text == "  Hello world  |  a sunrise | over hills  "

    def test_missing_delimiter_gives_empty_prompt(self):
        (line,) = parse_script("Just narration")
        assert line.spoken_text == "Just narration"
        assert line.image_prompt == ""

    def test_new_lines_start_pending_without_image(self):
        lines = parse_script("a|b\nc|d")
        for line in lines:
            assert line.status == LineStatus.PENDING
            assert line.image_data is None
            assert line.batch_id is None

    def test_windows_line_endings(self):
        lines = parse_script("a|1\r\nb|2\r\n")
        assert [l.image_prompt for l in lines] == ["1", "2"]

    @pytest.mark.parametrize("text", ["", "\n\n", "   \n\t\n"])
    def test_empty_script_is_rejected(self, text):
        with pytest.raises(ScriptParseError, match="empty or invalid"):
            parse_script(text)

    def test_reads_file_with_bom(self, tmp_path):
        path = tmp_path / "script.txt"
        path.write_text("\ufeffHello|sun\nBye|moon\n", encoding="utf-8")
        lines = parse_script_file(path)
        assert lines[0].spoken_text == "Hello"
        assert len(lines) == 2


class TestSanitizeFilename:
    def test_hello_world(self):
        (line,) = parse_script("Hello World|x")
        assert image_filename_for(line) == "hello_world.png"

    def test_each_unsafe_character_becomes_underscore(self):
        assert sanitize_filename("It's 5 o'clock!") == "it_s_5_o_clock_"

    def test_truncated_to_fifty_characters(self):
        name = sanitize_filename("x" * 80)
        assert name == "x" * 50

    def test_empty_narration(self):
        (line,) = parse_script("|only a prompt")
        assert image_filename_for(line) == ".png"
