"""Keeps the data entries between `# SORTING_START` and `# SORTING_END` markers sorted."""

from pathlib import Path
from typing import List

START = "# SORTING_START"
END = "# SORTING_END"


def _sorted_block(lines: List[str]) -> List[str]:
    return sorted(lines, key=lambda line: line.strip().lower())


def sort_sections(text: str) -> str:
    """Returns the text with the lines of every marked section sorted case-insensitively."""
    out: List[str] = []
    block: List[str] = []
    inside = False
    for line in text.split("\n"):
        marker = line.strip()
        if marker == START and not inside:
            inside = True
            out.append(line)
        elif marker == END and inside:
            inside = False
            out.extend(_sorted_block(block))
            block = []
            out.append(line)
        elif inside:
            block.append(line)
        else:
            out.append(line)
    if inside:
        raise ValueError(f"Unterminated section: '{START}' without '{END}'.")
    return "\n".join(out)


def is_sorted(text: str) -> bool:
    return sort_sections(text) == text


def sort_file(path: Path) -> bool:
    """Sorts the sections of a file in place. Returns True if the file changed."""
    text = path.read_text(encoding="utf-8")
    new = sort_sections(text)
    if new != text:
        path.write_text(new, encoding="utf-8")
    return new != text


if __name__ == "__main__":
    this_dir = Path(__file__).parent
    for filename in ["prep/data_base.py", "conventions.py"]:
        if sort_file(this_dir / filename):
            print(f"Sorted {filename}")
