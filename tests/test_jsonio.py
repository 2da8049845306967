import json

import pytest

from snapspot.utils import jsonio
from snapspot.utils.jsonio import read_json, write_json


def test_write_then_read(tmp_path):
    target = tmp_path / "nested" / "data.json"
    write_json(target, {"b": 1, "a": "Grundriss ü"})
    assert read_json(target) == {"a": "Grundriss ü", "b": 1}
    assert "ü" in target.read_text(encoding="utf-8")
    assert list(target.parent.iterdir()) == [target]


def test_failed_write_keeps_previous_content(tmp_path, monkeypatch):
    target = tmp_path / "data.json"
    write_json(target, {"version": 1})

    def _explode(*args, **kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr(jsonio.json, "dump", _explode)
    with pytest.raises(RuntimeError):
        write_json(target, {"version": 2})

    assert json.loads(target.read_text(encoding="utf-8")) == {"version": 1}
    assert list(tmp_path.iterdir()) == [target]
