"""Script parsing: one record per line, 'narration | image prompt'."""

import re
from pathlib import Path
from typing import List, Union

from automedia.config import FILENAME_MAX_LENGTH, IMAGE_EXTENSION, SCRIPT_DELIMITER
from automedia.domain.errors import ScriptParseError
from automedia.domain.models import ScriptLine

_UNSAFE_CHARS = re.compile(r"[^a-z0-9]")


def parse_script(text: str, delimiter: str = SCRIPT_DELIMITER) -> List[ScriptLine]:
    """
    Split raw script text into ordered ScriptLine records.
    Blank lines are dropped; ids are derived from the position among the kept lines.
    Raises ScriptParseError when nothing usable remains.
    """
    raw_lines = [line for line in (text or "").splitlines() if line.strip()]

    parsed = []
    for idx, line in enumerate(raw_lines):
        if delimiter in line:
            spoken, prompt = line.split(delimiter, 1)
        else:
            spoken, prompt = line, ""
        parsed.append(
            ScriptLine(
                id=f"line-{idx}",
                original_text=line,
                spoken_text=spoken.strip(),
                image_prompt=prompt.strip(),
            )
        )

    if not parsed:
        raise ScriptParseError("File appears empty or invalid format.")
    return parsed


def parse_script_file(path: Union[str, Path]) -> List[ScriptLine]:
    text = Path(path).read_text(encoding="utf-8-sig")
    return parse_script(text)


def sanitize_filename(text: str) -> str:
    """Lowercase, every char outside [a-z0-9] becomes '_', max 50 chars."""
    return _UNSAFE_CHARS.sub("_", text.lower())[:FILENAME_MAX_LENGTH]


def image_filename_for(line: ScriptLine) -> str:
    return sanitize_filename(line.spoken_text) + IMAGE_EXTENSION
