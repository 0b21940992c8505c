"""Tests for the arbwatch pydantic models."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from arbwatch.models import (
    BuildPush,
    ChangesetPayload,
    DecodedKey,
    KeyKind,
    LogOverview,
    Person,
    Push,
    PushInfoMessage,
    PushNotification,
    PushPayload,
    TreeDefinition,
    RepoDefinition,
    local_tree,
)


def _build_push(key: str, push_id: int, date: int) -> BuildPush:
    return BuildPush(
        key=key,
        push=Push(
            id=push_id,
            push_date=datetime.fromtimestamp(date, tz=timezone.utc),
            pusher=Person(name="p"),
        ),
    )


class TestKeyModels:
    def test_kind_values(self):
        assert KeyKind("r") is KeyKind.REVISION
        assert KeyKind("b") is KeyKind.BUILD
        assert KeyKind("l") is KeyKind.LOG

    def test_decoded_key_is_frozen(self):
        decoded = DecodedKey(key="s:r", kind=KeyKind.REVISION, path=(), segments=("s", "r"))
        with pytest.raises(ValidationError):
            decoded.key = "s:r:a"


class TestWireModels:
    def test_changeset_accepts_alias_and_name(self):
        by_alias = ChangesetPayload.model_validate({"shortRev": "abc", "node": "n", "author": "a"})
        by_name = ChangesetPayload(short_rev="abc", node="n", author="a")
        assert by_alias == by_name
        assert by_name.model_dump(by_alias=True)["shortRev"] == "abc"

    def test_push_payload_requires_id(self):
        with pytest.raises(ValidationError):
            PushPayload.model_validate({"date": 1, "user": "u"})

    def test_log_overview_failed(self):
        assert LogOverview().failed is False
        assert LogOverview.model_validate({"failureIndicated": True}).failed is True


class TestBuildPush:
    def test_depth_and_leaf(self):
        root = _build_push("s:r", 1, 10)
        child = _build_push("s:r:a", 2, 20)
        root.add_sub_push(child)
        assert root.depth == 0
        assert child.depth == 1
        assert root.is_leaf is False
        assert child.is_leaf is True

    def test_post_order_children_first(self):
        root = _build_push("s:r", 1, 10)
        a = _build_push("s:r:a", 2, 30)
        b = _build_push("s:r:b", 3, 20)
        a_child = _build_push("s:r:a:x", 4, 5)
        a.add_sub_push(a_child)
        root.add_sub_push(b)
        root.add_sub_push(a)
        assert [bp.key for bp in root.iter_post_order()] == ["s:r:a:x", "s:r:a", "s:r:b", "s:r"]

    def test_visit_leaves(self):
        root = _build_push("s:r", 1, 10)
        root.add_sub_push(_build_push("s:r:a", 2, 30))
        root.add_sub_push(_build_push("s:r:b", 3, 20))
        seen: list[str] = []
        root.visit_leaf_build_pushes(lambda bp: seen.append(bp.key))
        assert seen == ["s:r:a", "s:r:b"]

    def test_deep_chain_does_not_recurse(self):
        root = _build_push("s:r", 0, 0)
        node = root
        for depth in range(1, 2000):
            child = _build_push(node.key + ":n", depth, depth)
            node.sub_pushes.append(child)
            node = child
        assert sum(1 for _ in root.iter_post_order()) == 2000


class TestTrees:
    def test_path_mapping_for_depth(self):
        tree = TreeDefinition(
            tree_id="t", name="T", repos=[RepoDefinition(name="r", path_mapping={"a/": "A"})]
        )
        assert tree.path_mapping_for_depth(0) == {"a/": "A"}
        assert tree.path_mapping_for_depth(3) == {}

    def test_local_tree(self):
        tree = local_tree()
        assert tree.tree_id == "logal"
        assert tree.name == "Logal"


class TestNotifications:
    def test_push_notification_dump(self):
        note = PushNotification(
            tree_name="Logal", push_id=3, keys_and_values={}, scrape_timestamp_millis=5
        )
        dumped = note.model_dump(by_alias=True)
        assert dumped == {
            "type": "push",
            "treeName": "Logal",
            "pushId": 3,
            "keysAndValues": {},
            "scrapeTimestampMillis": 5,
            "revForTimestamp": 0,
        }

    def test_push_info_rejects_other_types(self):
        with pytest.raises(ValidationError):
            PushInfoMessage.model_validate({"type": "push", "keysAndValues": {}})
