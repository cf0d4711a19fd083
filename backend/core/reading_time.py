# core/reading_time.py - Reading time estimate and slugs for markdown posts
import math
import re

WORDS_PER_MINUTE = 200
MIN_READING_TIME_MINUTES = 1

_CODE_BLOCK = re.compile(r"```[\s\S]*?```")
_INLINE_CODE = re.compile(r"`[^`]*`")
_LINK = re.compile(r"\[([^\]]*)\]\([^)]*\)")
_FORMATTING = re.compile(r"[#*_~`]")
_NON_SLUG = re.compile(r"[^a-z0-9]+")

def strip_markdown(content: str) -> str:
    text = _CODE_BLOCK.sub("", content)
    text = _INLINE_CODE.sub("", text)
    text = _LINK.sub(r"\1", text)
    text = _FORMATTING.sub("", text)
    return re.sub(r"\n+", " ", text).strip()

def count_words(text: str) -> int:
    return len(text.split())

def calculate_reading_time(content) -> int:
    """Minutes needed to read markdown content, never less than one."""
    if not content or not isinstance(content, str):
        return MIN_READING_TIME_MINUTES

    words = count_words(strip_markdown(content))
    return max(MIN_READING_TIME_MINUTES, math.ceil(words / WORDS_PER_MINUTE))

def slugify(text: str) -> str:
    return _NON_SLUG.sub("-", (text or "").lower()).strip("-")
