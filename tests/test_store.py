"""Tests for the JSON-file analysis/batch store."""

import json

import pytest

from detectors import FileFacts
from pipeline.store import AnalysisRecord, AnalysisStore


class FakeResult:
    def __init__(self, result_type="real", manipulation=12, trust=88):
        self._d = {
            "result_type": result_type,
            "manipulation_score": manipulation,
            "trust_score": trust,
            "explanation": "ok",
            "detection_details": {"metadata": {"authentic": True, "flags": [], "description": "fine"}},
            "heatmap_data": {"regions": []},
            "metadata_analysis": {"has_exif": False, "flags": []},
            "processing_time_ms": 42,
            "image_width": 640,
            "image_height": 480,
        }

    def to_dict(self):
        return dict(self._d)


FACTS = FileFacts(name="cat.jpg", size=12345, mime_type="image/jpeg", last_modified=1.0)


def test_save_and_get_roundtrip(tmp_path):
    store = AnalysisStore(tmp_path)
    rec = store.save(FakeResult(), FACTS, image_url="https://example.com/cat.jpg")
    assert (tmp_path / f"{rec.id}.json").exists()

    loaded = store.get(rec.id)
    assert loaded == rec
    assert loaded.file_name == "cat.jpg"
    assert loaded.file_size == 12345
    assert loaded.image_width == 640
    assert loaded.image_url == "https://example.com/cat.jpg"
    assert loaded.created_at.endswith("+00:00")


def test_image_url_defaults_to_file_name(tmp_path):
    rec = AnalysisStore(tmp_path).save(FakeResult(), FACTS)
    assert rec.image_url == "cat.jpg"


def test_save_rejects_invalid_result(tmp_path):
    store = AnalysisStore(tmp_path)
    with pytest.raises(ValueError, match="result_type"):
        store.save(FakeResult(result_type="fake"), FACTS)
    with pytest.raises(ValueError, match="trust_score"):
        store.save(FakeResult(trust=101), FACTS)
    assert list(tmp_path.glob("*.json")) == []


def test_get_missing_raises_key_error(tmp_path):
    with pytest.raises(KeyError):
        AnalysisStore(tmp_path).get("nope")


def test_list_filters_and_orders_newest_first(tmp_path, monkeypatch):
    import pipeline.store as store_mod

    stamps = iter(["2024-01-01T00:00:00+00:00", "2024-01-02T00:00:00+00:00", "2024-01-03T00:00:00+00:00"])
    monkeypatch.setattr(store_mod, "_utcnow", lambda: next(stamps))

    store = AnalysisStore(tmp_path)
    a = store.save(FakeResult("real"), FACTS)
    b = store.save(FakeResult("edited", 60, 40), FACTS)
    c = store.save(FakeResult("real"), FACTS)

    assert [r.id for r in store.list()] == [c.id, b.id, a.id]
    assert [r.id for r in store.list(result_type="real")] == [c.id, a.id]
    assert store.list(result_type="ai_generated") == []


def test_list_on_missing_dir(tmp_path):
    assert AnalysisStore(tmp_path / "none").list() == []


def test_delete(tmp_path):
    store = AnalysisStore(tmp_path)
    rec = store.save(FakeResult(), FACTS)
    store.delete(rec.id)
    with pytest.raises(KeyError):
        store.get(rec.id)
    with pytest.raises(KeyError):
        store.delete(rec.id)


def test_record_from_dict_ignores_unknown_keys():
    data = AnalysisRecord(
        id="x", created_at="", image_url="", file_name="a.png", file_size=1,
        image_width=1, image_height=1, result_type="real",
        manipulation_score=0, trust_score=100, explanation="",
    ).to_dict()
    data["extra"] = 1
    assert AnalysisRecord.from_dict(data).file_name == "a.png"


def test_batch_lifecycle(tmp_path):
    store = AnalysisStore(tmp_path)
    batch = store.create_batch(3)
    assert batch.status == "processing"
    assert batch.completed_at is None

    batch.completed_images = 2
    batch.status = "completed"
    store.update_batch(batch)

    loaded = store.get_batch(batch.id)
    assert loaded.completed_images == 2
    assert loaded.status == "completed"
    assert loaded.completed_at is not None
    on_disk = json.loads((tmp_path / "batches" / f"{batch.id}.json").read_text(encoding="utf-8"))
    assert on_disk["total_images"] == 3


def test_batch_rejects_unknown_status(tmp_path):
    store = AnalysisStore(tmp_path)
    batch = store.create_batch(1)
    batch.status = "done"
    with pytest.raises(ValueError, match="status"):
        store.update_batch(batch)
