import re

_STEP_PREFIX = re.compile(r"^\s*(?:step\s*)?\d+\s*[.):-]\s*", re.IGNORECASE)


def clean_md(text: str) -> str:
    """
    Sanitize markdown artifacts from AI text.
    Removes:
    - Leading headers (#, ##)
    - Bold markers (**, __)
    - Leading bullets (-, *, •)
    """
    if not text:
        return ""

    # Remove bolding (**text** -> text)
    text = re.sub(r"(\*\*|__)(.*?)\1", r"\2", text)

    # Remove leading headers (# Title -> Title)
    text = re.sub(r"^\s*#+\s+", "", text)

    # Remove leading bullets (- Item -> Item)
    text = re.sub(r"^\s*[-*•]\s+", "", text)

    return text.strip()


def clean_instruction(text: str) -> str:
    """Clean an instruction line and drop a redundant "1." / "Step 2:" prefix."""
    return _STEP_PREFIX.sub("", clean_md(text)).strip()


def clean_lines(lines: list[str], *, numbered: bool = False) -> list[str]:
    """Clean every line and drop the ones left empty."""
    cleaner = clean_instruction if numbered else clean_md
    cleaned = [cleaner(line) for line in lines if isinstance(line, str)]
    return [line for line in cleaned if line]
