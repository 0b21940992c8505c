"""Tests for synthetic push id allocation."""

from __future__ import annotations

import json
import logging

from arbwatch.core.push_ids import FIRST_PUSH_ID, PushIdAllocator, next_push_id


class TestNextPushId:
    def test_no_prior_push(self):
        assert next_push_id(None) == FIRST_PUSH_ID == 1

    def test_empty_record(self):
        assert next_push_id({}) == 1

    def test_one_past_prior(self):
        assert next_push_id({"s:r": {"id": 41}}) == 42

    def test_string_id_is_coerced(self):
        assert next_push_id({"s:r": {"id": "9"}}) == 10

    def test_json_text_root(self):
        assert next_push_id({"s:r": json.dumps({"id": 41})}) == 42


class TestPushIdAllocator:
    def test_empty_store_allocates_one(self, store):
        assert PushIdAllocator(store).allocate("logal") == 1

    def test_follows_highest_stored_push(self, store, make_push_value):
        store.put_push_stuff("logal", 41, {"s:r": make_push_value(push_id=41)})
        store.put_push_stuff("logal", 3, {"s:r": make_push_value(push_id=3)})
        assert PushIdAllocator(store).allocate("logal") == 42

    def test_trees_are_independent(self, store, make_push_value):
        store.put_push_stuff("other", 10, {"s:r": make_push_value(push_id=10)})
        assert PushIdAllocator(store).allocate("logal") == 1

    def test_logs_decision(self, store, caplog):
        with caplog.at_level(logging.INFO, logger="arbwatch.core.push_ids"):
            PushIdAllocator(store).allocate("logal")
        assert "Decided on push id 1" in caplog.text

    def test_json_text_root_row(self, store, make_push_value):
        store.put_push_stuff("logal", 41, {"s:r": json.dumps(make_push_value(push_id=41))})
        assert PushIdAllocator(store).allocate("logal") == 42
