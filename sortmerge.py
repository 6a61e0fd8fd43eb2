import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator

logger = logging.getLogger(__name__)

# Merges or outer-joins two iterables that are already sorted by the same key,
# in one pass, holding at most one pending element per side.
#
# Inputs are NOT checked for sortedness. Unsorted input gives a wrong (but
# still finite) interleaving. None is not a valid element: it marks the
# missing side of a PairedRow.
#
# See http://use-the-index-luke.com/sql/join/sort-merge-join


# ----- ROWS -----
@dataclass(frozen=True)
class PairedRow:
    left: Any = None
    right: Any = None

    def __post_init__(self):
        assert self.left is not None or self.right is not None

    # Present values, left first.
    def values(self) -> Iterator[Any]:
        if self.left is not None: yield self.left
        if self.right is not None: yield self.right

    def is_match(self) -> bool:
        return self.left is not None and self.right is not None


# ----- ORDERINGS -----
# An exhausted side. Sorts after every present value, so once one side runs
# out the other side drains to completion.
class Done:
    def __repr__(self): return "DONE"

DONE = Done()

class Ordering:
    # Three-way comparison: negative, zero or positive.
    def compare(self, a, b) -> int: raise NotImplementedError

@dataclass(frozen=True)
class NaturalOrder(Ordering):
    def compare(self, a, b):
        if a < b: return -1
        if b < a: return 1
        return 0

@dataclass(frozen=True)
class ComparatorOrder(Ordering):
    comparator: Callable[[Any, Any], int]
    def compare(self, a, b): return self.comparator(a, b)

@dataclass(frozen=True)
class KeyOrder(Ordering):
    key: Callable[[Any], Any]
    def compare(self, a, b):
        ka, kb = self.key(a), self.key(b)
        if ka < kb: return -1
        if kb < ka: return 1
        return 0

def ordering(comparator=None, key=None) -> Ordering:
    if comparator is not None and key is not None:
        raise TypeError("pass either comparator or key, not both")
    if comparator is not None: return ComparatorOrder(comparator)
    if key is not None: return KeyOrder(key)
    return NaturalOrder()

# Compares two sides, either of which may be DONE. Never called with both DONE.
def compare_sides(order: Ordering, left, right) -> int:
    assert not (left is DONE and right is DONE)
    if left is DONE: return 1
    if right is DONE: return -1
    return order.compare(left, right)


# ----- THE STEP FUNCTION -----
@dataclass(frozen=True)
class EngineState:
    left: Any = DONE
    right: Any = DONE
    need_left: bool = True
    need_right: bool = True

    def finished(self) -> bool:
        return (self.left is DONE and self.right is DONE
                and not self.need_left and not self.need_right)

# One merge step. Fetches on the sides flagged as needing it (a fetch returns
# DONE when its side is exhausted); an unflagged side keeps its last value.
# Returns the new state and the emitted row, or None for the row once both
# sides are DONE.
def step(state: EngineState, order: Ordering,
         fetch_left: Callable[[], Any],
         fetch_right: Callable[[], Any]) -> tuple[EngineState, PairedRow | None]:
    left = fetch_left() if state.need_left else state.left
    right = fetch_right() if state.need_right else state.right

    if left is DONE and right is DONE:
        return EngineState(DONE, DONE, False, False), None

    cmp = compare_sides(order, left, right)
    if cmp < 0:
        # left wins; right is compared again against the next left value.
        return EngineState(left, right, True, False), PairedRow(left, None)
    if cmp > 0:
        return EngineState(left, right, False, True), PairedRow(None, right)
    # Equal keys: advance both. Duplicates on both sides pair up one at a
    # time rather than forming a cross product.
    return EngineState(left, right, True, True), PairedRow(left, right)


# ----- ENGINE -----
# A forward-only, non-restartable iterator of PairedRows over two iterables.
# Not safe for concurrent use.
class MergeEngine:
    def __init__(self, left: Iterable, right: Iterable, order: Ordering | None = None):
        self.left = iter(left)
        self.right = iter(right)
        self.order = NaturalOrder() if order is None else order
        self.state = EngineState()
        self.rows = 0
        logger.debug("merge engine created with %s", type(self.order).__name__)

    def fetch_left(self): return next(self.left, DONE)
    def fetch_right(self): return next(self.right, DONE)

    @property
    def exhausted(self) -> bool: return self.state.finished()

    def __iter__(self): return self
    def __next__(self) -> PairedRow:
        if self.exhausted: raise StopIteration
        self.state, row = step(self.state, self.order,
                               self.fetch_left, self.fetch_right)
        if row is None:
            logger.debug("merge engine exhausted after %d rows", self.rows)
            raise StopIteration
        self.rows += 1
        return row


# ----- VIEWS -----
# Both views are re-iterable: each iter() starts a fresh engine over fresh
# iterators of the sources. One-shot iterators as sources only work once.

# Every element of both sides exactly once, in sorted order.
@dataclass(frozen=True)
class Merge:
    left: Iterable
    right: Iterable
    order: Ordering = NaturalOrder()

    def __iter__(self) -> Iterator[Any]:
        for row in MergeEngine(self.left, self.right, self.order):
            yield from row.values()

# Full outer join: one PairedRow per step, unmatched side None.
@dataclass(frozen=True)
class Join:
    left: Iterable
    right: Iterable
    order: Ordering = NaturalOrder()

    def __iter__(self) -> Iterator[PairedRow]:
        return MergeEngine(self.left, self.right, self.order)


# ----- FACTORIES -----
def create_merge(left: Iterable, right: Iterable, comparator=None, *, key=None) -> Merge:
    return Merge(left, right, ordering(comparator, key))

def create_join(left: Iterable, right: Iterable, comparator=None, *, key=None) -> Join:
    return Join(left, right, ordering(comparator, key))

# Single pass over whatever iterators the caller already holds.
def merge_join(left: Iterable, right: Iterable, comparator=None, *, key=None) -> MergeEngine:
    return MergeEngine(left, right, ordering(comparator, key))
