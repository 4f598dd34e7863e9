# core/shuffle.py
import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar('T')


def shuffle_items(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """
    Returns a shuffled copy of `items`. The input is never mutated.
    Pass `rng` to make the order reproducible.
    """
    shuffled = list(items)
    (rng or random).shuffle(shuffled)
    return shuffled
