from __future__ import annotations

import logging

import pytest

from enrichrun.domain.merging import (
    collect_failures,
    distinct_results,
    lookup,
    merge_results,
    touch_timestamps,
)
from tests.helpers.enrichment import FIXED_NOW, make_result


def test_merge_writes_raw_and_normalized_keys() -> None:
    result = make_result("Spb.Lemanapro.ru", inn="7701234567")

    merged = merge_results({}, [result])

    assert merged == {"Spb.Lemanapro.ru": result, "lemanapro.ru": result}


def test_merge_does_not_touch_input() -> None:
    current = {"foo.ru": make_result("foo.ru")}

    merged = merge_results(current, [make_result("foo.ru", inn="7701234567")])

    assert current["foo.ru"].inn is None
    assert merged["foo.ru"].inn == "7701234567"


def test_merge_is_idempotent() -> None:
    batch = [make_result("a.ru", inn="7701234567"), make_result("www.b.ru", emails=["x@b.ru"])]
    once = merge_results({"c.ru": make_result("c.ru")}, batch)

    assert merge_results(once, batch) == once


def test_merge_is_commutative_for_disjoint_domains() -> None:
    first = [make_result("a.ru", inn="7701234567")]
    second = [make_result("b.ru", emails=["x@b.ru"])]

    left = merge_results(merge_results({}, first), second)
    right = merge_results(merge_results({}, second), first)

    assert left == right


def test_newest_result_replaces_wholesale_even_with_error() -> None:
    old = make_result("foo.ru", inn="7701234567", emails=["a@foo.ru"])
    new = make_result("foo.ru", error="timeout (90s)")

    merged = merge_results(merge_results({}, [old]), [new])

    assert merged["foo.ru"] is new
    assert merged["foo.ru"].inn is None


def test_blank_domains_are_reported(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING)

    merged = merge_results({}, [make_result("  "), make_result("foo.ru")])

    assert list(merged) == ["foo.ru"]
    assert "Dropped 1 enrichment result" in caplog.text


def test_distinct_results_counts_each_root_once() -> None:
    merged = merge_results(
        {},
        [make_result("Shop.Foo.ru"), make_result("bar.ru"), make_result("www.baz.ru")],
    )

    distinct = distinct_results(merged)

    assert len(merged) == 5
    assert sorted(result.domain for result in distinct) == ["Shop.Foo.ru", "bar.ru", "www.baz.ru"]


def test_lookup_falls_back_to_normalized_and_lowercase_keys() -> None:
    result = make_result("Shop.Foo.ru")
    merged = merge_results({}, [result])

    assert lookup(merged, "Shop.Foo.ru") is result
    assert lookup(merged, "https://other.foo.ru/") is result
    assert lookup(merged, "unknown.ru") is None
    assert lookup({"mixed.ru": result}, "MIXED.ru") is result


def test_touch_timestamps_uses_normalized_domain() -> None:
    stamped = touch_timestamps({"old.ru": "earlier"}, [make_result("www.Foo.ru")], FIXED_NOW)

    assert stamped == {"old.ru": "earlier", "foo.ru": FIXED_NOW.isoformat()}


def test_collect_failures() -> None:
    merged = merge_results(
        {},
        [make_result("ok.ru", inn="7701234567"), make_result("bad.ru", error="timeout")],
    )

    failures = collect_failures(merged)

    assert [(failure.domain, failure.reason) for failure in failures] == [("bad.ru", "timeout")]
