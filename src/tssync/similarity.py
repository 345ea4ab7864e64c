"""Similarity strategies used for fuzzy recovery of changed source strings.

A strategy is any callable taking two strings and returning a score in
``[0, 1]`` where ``1`` means identical.
"""

from difflib import SequenceMatcher
import re
from typing import Callable

from tssync.errors import ConfigurationError

Similarity = Callable[[str, str], float]

_token_regex = re.compile(r"\w+", re.UNICODE)


def sequence_ratio(a: str, b: str) -> float:
    if a == b:
        return 1.0
    return SequenceMatcher(None, a, b, autojunk=False).ratio()


def token_ratio(a: str, b: str) -> float:
    """Jaccard overlap of the lower-cased word tokens."""
    left = set(_token_regex.findall(a.lower()))
    right = set(_token_regex.findall(b.lower()))
    if not left and not right:
        return 1.0 if a == b else 0.0
    return len(left & right) / len(left | right)


STRATEGIES: dict[str, Similarity] = {
    "sequence": sequence_ratio,
    "token": token_ratio,
}


def get_strategy(name: str) -> Similarity:
    try:
        return STRATEGIES[name]
    except KeyError:
        raise ConfigurationError(
            f'Unknown similarity strategy "{name}", expected one of {sorted(STRATEGIES)}'
        ) from None
