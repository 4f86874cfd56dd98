"""Global title/subtitle/option-title uniqueness and final-step ordering.

Both passes mutate the document they are handed and return it. Duplicate
strings are disambiguated first-occurrence-wins: the earlier instance keeps its
text, later ones get the smallest free numeric suffix, inserted before any
trailing emoji so `"Budget 💰"` becomes `"Budget 1 💰"`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

log = logging.getLogger(__name__)

EmojiPredicate = Callable[[str], bool]

# Emoji base code points; ©, ®, ™ and ASCII digits are not included.
EMOJI_RANGES: Tuple[Tuple[int, int], ...] = (
    (0x1F000, 0x1FAFF),  # mahjong/cards, enclosed, pictographs, emoticons, transport, symbols
    (0x2300, 0x23FF),    # misc technical (⌚, ⏱, ⏰)
    (0x2600, 0x27BF),    # misc symbols and dingbats (☀, ✓, ✨)
    (0x2B00, 0x2BFF),    # arrows and stars (⭐, ⬆)
    (0x3030, 0x3030),
    (0x303D, 0x303D),
    (0x3297, 0x3297),
    (0x3299, 0x3299),
)

VARIATION_SELECTORS = {0xFE0E, 0xFE0F}
SKIN_TONES = (0x1F3FB, 0x1F3FF)
KEYCAP = 0x20E3
TAGS = (0xE0020, 0xE007F)
ZWJ = 0x200D
REGIONAL_INDICATORS = (0x1F1E6, 0x1F1FF)


def is_emoji_char(ch: str) -> bool:
    """Default predicate: is `ch` a single emoji base code point."""
    if len(ch) != 1:
        return False
    cp = ord(ch)
    return any(lo <= cp <= hi for lo, hi in EMOJI_RANGES)


def _is_modifier(cp: int) -> bool:
    return (
        cp in VARIATION_SELECTORS
        or cp == KEYCAP
        or SKIN_TONES[0] <= cp <= SKIN_TONES[1]
        or TAGS[0] <= cp <= TAGS[1]
    )


def _is_regional(cp: int) -> bool:
    return REGIONAL_INDICATORS[0] <= cp <= REGIONAL_INDICATORS[1]


def _emoji_start(text: str, end: int, is_emoji: EmojiPredicate) -> Optional[int]:
    """Index where the emoji cluster ending just before `end` starts, if any."""
    start = _single_emoji_start(text, end, is_emoji)
    # ZWJ chains: 👩‍💻, 🏳️‍🌈
    while start is not None and start > 0 and ord(text[start - 1]) == ZWJ:
        prev = _single_emoji_start(text, start - 1, is_emoji)
        if prev is None:
            break
        start = prev
    return start


def _single_emoji_start(text: str, end: int, is_emoji: EmojiPredicate) -> Optional[int]:
    i = end
    while i > 0 and _is_modifier(ord(text[i - 1])):
        i -= 1
    if i == 0:
        return None
    if _is_regional(ord(text[i - 1])):
        if i >= 2 and _is_regional(ord(text[i - 2])):
            return i - 2
        return i - 1 if is_emoji(text[i - 1]) else None
    if not is_emoji(text[i - 1]):
        return None
    return i - 1


def split_trailing_emoji(text: str, is_emoji: EmojiPredicate = is_emoji_char) -> Tuple[str, str]:
    """Split `text` into (base, emoji) where emoji is the trailing cluster or ""."""
    stripped = text.rstrip()
    start = _emoji_start(stripped, len(stripped), is_emoji)
    if start is None:
        return text, ""
    return stripped[:start].strip(), stripped[start:]


def make_unique(candidate: str, scope: Set[str], is_emoji: EmojiPredicate = is_emoji_char) -> str:
    """Return `candidate`, or its first free numbered variant, and consume it in `scope`."""
    if candidate not in scope:
        scope.add(candidate)
        return candidate
    base, emoji = split_trailing_emoji(candidate, is_emoji)
    n = 1
    while True:
        attempt = " ".join(p for p in (base, str(n), emoji) if p)
        if attempt not in scope:
            scope.add(attempt)
            return attempt
        n += 1


@dataclass
class UniquenessScopes:
    """Consumed strings carried through one deduplication traversal."""

    titles: Set[str] = field(default_factory=set)
    subtitles: Set[str] = field(default_factory=set)


def dedupe_step(step: Dict[str, Any], scopes: UniquenessScopes, is_emoji: EmojiPredicate = is_emoji_char) -> UniquenessScopes:
    if isinstance(step.get("title"), str):
        step["title"] = make_unique(step["title"], scopes.titles, is_emoji)
    if isinstance(step.get("subtitle"), str):
        step["subtitle"] = make_unique(step["subtitle"], scopes.subtitles, is_emoji)
    options = step.get("options")
    if isinstance(options, list):
        option_titles: Set[str] = set()
        for opt in options:
            if isinstance(opt, dict) and isinstance(opt.get("title"), str):
                opt["title"] = make_unique(opt["title"], option_titles, is_emoji)
    return scopes


def dedupe_steps(steps: List[Dict[str, Any]], is_emoji: EmojiPredicate = is_emoji_char) -> UniquenessScopes:
    scopes = UniquenessScopes()
    for step in steps:
        if isinstance(step, dict):
            scopes = dedupe_step(step, scopes, is_emoji)
    return scopes


def _first_index(steps: List[Any], step_type: str) -> Optional[int]:
    for idx, step in enumerate(steps):
        if isinstance(step, dict) and step.get("type") == step_type:
            return idx
    return None


def reorder_final_steps(config: Dict[str, Any]) -> Dict[str, Any]:
    """Move the first location then the first contact step to the end."""
    steps = config.get("steps")
    if not isinstance(steps, list):
        return config
    loc_idx = _first_index(steps, "location")
    contact_idx = _first_index(steps, "contact")
    if loc_idx is None and contact_idx is None:
        return config
    moved = [i for i in (loc_idx, contact_idx) if i is not None]
    remaining = [s for i, s in enumerate(steps) if i not in moved]
    steps[:] = remaining + [steps[i] for i in moved]
    return config


def enforce(config: Dict[str, Any], is_emoji: EmojiPredicate = is_emoji_char) -> Dict[str, Any]:
    """Reorder final steps, then deduplicate titles, subtitles and option titles."""
    reorder_final_steps(config)
    steps = config.get("steps")
    if isinstance(steps, list):
        dedupe_steps(steps, is_emoji)
    return config
