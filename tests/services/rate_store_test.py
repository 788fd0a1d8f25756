from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from random import Random
from threading import Thread

from services.rate_store import RateStore
from tests.helpers.rates import BASE_TIME, SLOT, make_rate, make_slots


def test_insert_reports_new_records_only() -> None:
    store = RateStore()
    rate = make_rate(BASE_TIME, 10)

    assert store.insert(rate) is True
    assert store.insert(make_rate(BASE_TIME, 10)) is False
    assert len(store) == 1


def test_snapshot_is_ordered_by_start_then_price() -> None:
    rates = make_slots(BASE_TIME, [12, 7, 30, 18, 5, 22])
    same_start_cheaper = make_rate(BASE_TIME + SLOT, 3)
    shuffled = rates + [same_start_cheaper]
    Random(7).shuffle(shuffled)

    store = RateStore(shuffled)
    snapshot = store.snapshot()

    assert len(snapshot) == 7
    for earlier, later in zip(snapshot, snapshot[1:]):
        assert earlier.valid_from <= later.valid_from
        if earlier.valid_from == later.valid_from:
            assert earlier.value_inc_vat <= later.value_inc_vat
    assert snapshot[1] == same_start_cheaper
    assert snapshot[2].value_inc_vat == Decimal("7")


def test_merge_all_counts_only_new_records_for_overlapping_pages() -> None:
    store = RateStore()
    first_page = make_slots(BASE_TIME, [10, 11, 12, 13])
    overlapping_page = make_slots(BASE_TIME + SLOT * 2, [12, 13, 14, 15])

    assert store.merge_all(first_page) == 4
    assert store.merge_all(overlapping_page) == 2
    assert store.merge_all(first_page) == 0
    assert [rate.value_inc_vat for rate in store.snapshot()] == [Decimal(v) for v in (10, 11, 12, 13, 14, 15)]


def test_same_start_and_price_with_different_end_is_dropped() -> None:
    # valid_to is not part of a record's identity; the later arrival is ignored.
    store = RateStore()
    original = make_rate(BASE_TIME, 10, duration=timedelta(minutes=30))
    longer = make_rate(BASE_TIME, 10, duration=timedelta(hours=1))

    store.insert(original)

    assert store.insert(longer) is False
    assert store.snapshot() == (original,)


def test_snapshot_is_detached_from_later_inserts() -> None:
    store = RateStore(make_slots(BASE_TIME, [1, 2]))
    snapshot = store.snapshot()

    store.insert(make_rate(BASE_TIME + SLOT * 5, 9))

    assert len(snapshot) == 2
    assert len(store) == 3


def test_empty_store_is_falsy() -> None:
    store = RateStore()

    assert not store
    store.insert(make_rate(BASE_TIME, 1))
    assert store


def test_concurrent_merges_keep_one_copy_of_each_slot() -> None:
    store = RateStore()
    rates = make_slots(BASE_TIME, range(200))

    def merge(offset: int) -> None:
        ordered = rates[offset:] + rates[:offset]
        store.merge_all(ordered)

    threads = [Thread(target=merge, args=(offset,)) for offset in (0, 50, 100, 150)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert store.snapshot() == tuple(rates)
