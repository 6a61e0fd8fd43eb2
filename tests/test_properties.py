"""Property tests for merge and join over arbitrary sorted inputs."""

from __future__ import annotations

from collections import Counter

from hypothesis import given
from hypothesis import strategies as st

from sortmerge import create_join, create_merge

sorted_ints = st.lists(st.integers(min_value=-50, max_value=50)).map(sorted)
unique_sorted_ints = st.sets(st.integers(min_value=-50, max_value=50)).map(sorted)


def row_key(row):
    return row.left if row.left is not None else row.right


@given(sorted_ints, sorted_ints)
def test_merge_is_sorted_multiset_union(a: list[int], b: list[int]) -> None:
    merged = list(create_merge(a, b))

    assert merged == sorted(merged)
    assert Counter(merged) == Counter(a) + Counter(b)


@given(sorted_ints, sorted_ints)
def test_join_uses_every_element_once(a: list[int], b: list[int]) -> None:
    rows = list(create_join(a, b))

    assert [r.left for r in rows if r.left is not None] == a
    assert [r.right for r in rows if r.right is not None] == b


@given(sorted_ints, sorted_ints)
def test_join_keys_never_decrease(a: list[int], b: list[int]) -> None:
    keys = [row_key(r) for r in create_join(a, b)]

    assert keys == sorted(keys)


@given(sorted_ints, sorted_ints)
def test_join_rows_pair_equal_keys(a: list[int], b: list[int]) -> None:
    for row in create_join(a, b):
        if row.is_match():
            assert row.left == row.right


@given(unique_sorted_ints, unique_sorted_ints)
def test_shared_keys_pair_into_one_row(a: list[int], b: list[int]) -> None:
    rows = list(create_join(a, b))

    matched = [r.left for r in rows if r.is_match()]
    assert matched == sorted(set(a) & set(b))
    assert len(rows) == len(set(a) | set(b))


@given(sorted_ints)
def test_empty_left_boundary(b: list[int]) -> None:
    assert list(create_merge([], b)) == b
    assert [(r.left, r.right) for r in create_join([], b)] == [(None, x) for x in b]


@given(st.lists(st.text(max_size=4)), st.lists(st.text(max_size=4)))
def test_merge_by_key(a: list[str], b: list[str]) -> None:
    a, b = sorted(a, key=len), sorted(b, key=len)

    merged = list(create_merge(a, b, key=len))

    assert [len(s) for s in merged] == sorted(len(s) for s in a + b)
    assert Counter(merged) == Counter(a) + Counter(b)
