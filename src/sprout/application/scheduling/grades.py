"""Grade normalizer: folds the two-button surface onto the four-level ratings."""

from typing import Any

from sprout.domain.scheduling.models import BinaryGrade, Rating

_BY_NAME = {r.name.lower(): r for r in Rating}


def parse_rating(raw: Any) -> Rating | BinaryGrade | None:
    """
    Parse a raw rating from a log or a caller.

    Accepts Rating/BinaryGrade members, the strings again/hard/good/easy/
    pass/fail (any case, surrounding whitespace ignored) and the integers 1-4.
    Returns None when the value can't be understood.
    """
    if isinstance(raw, (Rating, BinaryGrade)):
        return raw
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return Rating(raw) if 1 <= raw <= 4 else None
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text in _BY_NAME:
            return _BY_NAME[text]
        if text in (BinaryGrade.PASS.value, BinaryGrade.FAIL.value):
            return BinaryGrade(text)
        if text.isascii() and text.isdigit():
            return parse_rating(int(text))
    return None


def normalize(rating: Rating | BinaryGrade, pass_rating: Rating = Rating.GOOD) -> Rating:
    """
    Map any accepted rating onto the four-level space.

    pass -> `pass_rating` (GOOD by default, EASY for hosts that treat a pass
    as an effortless recall), fail -> AGAIN.
    """
    if isinstance(rating, Rating):
        return rating
    if rating is BinaryGrade.PASS:
        return pass_rating
    return Rating.AGAIN


def require_rating(raw: Any, pass_rating: Rating = Rating.GOOD) -> Rating:
    """Parse and normalize, raising ValueError for unparseable input."""
    parsed = parse_rating(raw)
    if parsed is None:
        raise ValueError(f"Unrecognized rating: {raw!r}")
    return normalize(parsed, pass_rating)
