"""Tests for cushion.collections — DictObject."""
from __future__ import annotations

import json

from cushion.collections import DictObject


# ── DictObject ─────────────────────────────────────────────────────────

class TestDictObject:
    """Tests for DictObject attribute-style dict access."""

    def test_init_kwargs(self):
        obj = DictObject(total=2, offset=0)
        assert obj["total"] == 2
        assert obj.offset == 0

    def test_init_pairs(self):
        obj = DictObject([("id", "doc1"), ("rev", "1-abc")])
        assert obj.id == "doc1"
        assert obj["rev"] == "1-abc"

    def test_set_via_attr(self):
        obj = DictObject()
        obj.ok = True
        assert obj["ok"] is True

    def test_delete_via_attr(self):
        obj = DictObject(error="not_found")
        del obj.error
        assert "error" not in obj

    def test_equals_plain_dict(self):
        assert DictObject(total=2, offset=0) == {"total": 2, "offset": 0}

    def test_dict_identity(self):
        obj = DictObject(a=1)
        assert obj.__dict__ is obj

    def test_object_pairs_hook(self):
        data = json.loads('{"ok": true, "nested": {"rev": "1-a"}}', object_pairs_hook=DictObject)
        assert isinstance(data, DictObject)
        assert data.ok is True
        assert data.nested.rev == "1-a"

    def test_non_identifier_keys(self):
        data = json.loads('{"_rev": "2-b", "total_rows": 3}', object_pairs_hook=DictObject)
        assert data["_rev"] == "2-b"
        assert data.total_rows == 3
