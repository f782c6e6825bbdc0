"""Chinese text utilities: continuity tails and speech segmentation."""

import re

_SENTENCE_SPLIT_RE = re.compile(r"([。！？])")


def get_chapter_ending(content: str, char_limit: int = 800) -> str:
    """Extract the ending portion of a chapter for continuity.

    Returns the last `char_limit` characters of the chapter content.
    """
    if not content or char_limit <= 0:
        return ""
    if len(content) <= char_limit:
        return content
    return content[-char_limit:]


def split_text_for_speech(text: str, max_length: int = 1000) -> list[str]:
    """Split long text into speech-synthesis segments.

    Segments break after 。！？ and stay within ``max_length`` unless a
    single sentence is longer than that.
    """
    parts = _SENTENCE_SPLIT_RE.split(text or "")
    segments: list[str] = []
    current = ""

    for i in range(0, len(parts), 2):
        sentence = parts[i] + (parts[i + 1] if i + 1 < len(parts) else "")
        if len(current) + len(sentence) <= max_length:
            current += sentence
        else:
            if current:
                segments.append(current.strip())
            current = sentence

    if current:
        segments.append(current.strip())

    return [s for s in segments if s]
