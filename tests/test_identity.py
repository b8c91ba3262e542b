from __future__ import annotations

import re

from legal_calendar.repositories.identity import IdentityAllocator


def test_first_id_is_one_and_follows_the_maximum():
    ids = IdentityAllocator()
    assert ids.next_id("events", []) == 1
    assert ids.next_id("news", [3, 7, 5]) == 8


def test_ids_are_not_reused_after_deleting_the_maximum():
    ids = IdentityAllocator()
    assert ids.next_id("events", [1, 2]) == 3
    # record 3 was deleted before it was written back; 3 must not come back
    assert ids.next_id("events", [1, 2]) == 4
    assert ids.next_id("events", []) == 5


def test_collections_have_independent_counters():
    ids = IdentityAllocator()
    ids.next_id("events", [10])
    assert ids.next_id("news", []) == 1


def test_forget_resets_the_high_water_mark():
    ids = IdentityAllocator()
    ids.next_id("provinces", [41])
    ids.forget("provinces")
    assert ids.next_id("provinces", []) == 1


def test_non_integer_ids_are_ignored():
    ids = IdentityAllocator()
    assert ids.next_id("provinces", ["hcm", None, True, 2]) == 3


def test_token_format():
    token = IdentityAllocator.token("evt")
    assert re.fullmatch(r"evt_\d{13}_[a-z0-9]{9}", token)
    assert token != IdentityAllocator.token("evt")
