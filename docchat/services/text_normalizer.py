"""Repair of PDF text-extraction artifacts before chunking."""
import re

# A hyphen at the end of a line followed by the rest of the word on the next line.
_LINE_BREAK_HYPHEN = re.compile(r"(\w+)-[ \t]*\n[ \t]*(\w+)")
_WHITESPACE_RUN = re.compile(r"\s+")
_SPACE_BEFORE_CLOSING = re.compile(r" +([.,;:!?)])")
_SPACE_AFTER_OPENING = re.compile(r"([({]) +")

# Second parts that usually mean the hyphen is part of the word.
COMMON_PREFIXES = ("re", "pre", "un", "non", "anti")
COMMON_SUFFIXES = ("ing", "ed", "able", "ible", "tion", "sion")
# A suffixed second part only counts as a word of its own with a stem this long.
MIN_SUFFIXED_STEM = 4

PARAGRAPH_SEPARATOR = "\n\n"


def _is_suffixed_word(part: str) -> bool:
    return any(
        part.endswith(suffix) and len(part) - len(suffix) >= MIN_SUFFIXED_STEM
        for suffix in COMMON_SUFFIXES
    )


def _rejoin_hyphenated(match: re.Match) -> str:
    first, second = match.group(1), match.group(2)
    if (
        len(first) > 2 and len(second) > 2
        and not second.startswith(COMMON_PREFIXES)
        and not _is_suffixed_word(second)
    ):
        return first + second
    return f"{first}-{second}"


def _collapse_whitespace(match: re.Match) -> str:
    # Runs spanning a blank line are paragraph breaks; everything else is a space.
    if match.group(0).count("\n") >= 2:
        return PARAGRAPH_SEPARATOR
    return " "


def fix_hyphenation(text: str) -> str:
    """Rejoin words split across a line break, keeping likely compounds hyphenated."""
    return _LINE_BREAK_HYPHEN.sub(_rejoin_hyphenated, text)


def normalize(raw_text: str, fix_hyphenation_breaks: bool = True) -> str:
    """
    Clean extracted text so it can be chunked.

    Args:
        raw_text: Text as returned by the extractor
        fix_hyphenation_breaks: Rejoin ``word-<newline>word`` splits

    Returns:
        Normalized text; paragraphs are separated by exactly one blank line
    """
    if not raw_text:
        return ""

    text = raw_text.replace("\r\n", "\n").replace("\r", "\n").replace("\f", "\n")

    if fix_hyphenation_breaks:
        text = fix_hyphenation(text)

    text = _WHITESPACE_RUN.sub(_collapse_whitespace, text)
    text = _SPACE_BEFORE_CLOSING.sub(r"\1", text)
    text = _SPACE_AFTER_OPENING.sub(r"\1", text)

    return text.strip()
