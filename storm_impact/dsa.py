"""
Sorting utilities
=================

Rankings must be reproducible: when two event types tie on a metric they keep
their group-iteration order. Python's `sorted` is stable too, but with
`reverse=True` the intent is easy to lose, so the ranking code goes through
this explicit merge sort whose tie rule is spelled out in `_merge`.
"""

from __future__ import annotations
from typing import Callable, List, Sequence, TypeVar

T = TypeVar("T")

def merge_sort(arr: Sequence[T], key: Callable[[T], object] = lambda x: x, reverse: bool = False) -> List[T]:
    """Stable merge sort (ascending or descending). Returns a new list.

    Stability comes from `_merge` taking from the left half whenever the keys
    are equal. For descending order that means comparing with `>=`: a strict
    `>` would take the right-hand element on a tie and flip equal groups out
    of their alphabetical order.
    """
    if len(arr) <= 1:
        return list(arr)
    mid = len(arr) // 2
    left = merge_sort(arr[:mid], key=key, reverse=reverse)
    right = merge_sort(arr[mid:], key=key, reverse=reverse)
    return _merge(left, right, key=key, reverse=reverse)

def _merge(left: List[T], right: List[T], key: Callable[[T], object], reverse: bool) -> List[T]:
    out: List[T] = []
    i = j = 0
    while i < len(left) and j < len(right):
        a, b = key(left[i]), key(right[j])
        # equal keys: take from the left half first
        take_left = (a >= b) if reverse else (a <= b)
        if take_left:
            out.append(left[i]); i += 1
        else:
            out.append(right[j]); j += 1
    out.extend(left[i:])
    out.extend(right[j:])
    return out
