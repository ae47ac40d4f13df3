"""Tests for the pixel-based signal detectors."""

import tracemalloc

import numpy as np
import pytest

from detectors import (
    AIArtifactDetector,
    FileFacts,
    LightingDetector,
    PixelAnomalyDetector,
    PixelBuffer,
    SemanticDetector,
    default_detectors,
)
from detectors.base import SignalResult
from detectors.lighting import brightness_stats
from detectors.semantic import distinct_quantized_colors
from detectors.utils import neighbor_average, round_half_up

FACTS = FileFacts(name="photo.jpg", size=500_000, mime_type="image/jpeg", last_modified=1_700_000_000_000)


def make_buffer(rgb: np.ndarray) -> PixelBuffer:
    rgb = np.asarray(rgb, dtype=np.uint8)
    alpha = np.full(rgb.shape[:2] + (1,), 255, dtype=np.uint8)
    return PixelBuffer.from_array(np.concatenate([rgb, alpha], axis=2))


def gray(h: int = 64, w: int = 64, value: int = 128) -> PixelBuffer:
    return make_buffer(np.full((h, w, 3), value, dtype=np.uint8))


def checkerboard(h: int = 32, w: int = 32) -> PixelBuffer:
    y, x = np.mgrid[0:h, 0:w]
    v = ((x + y) % 2 * 255).astype(np.uint8)
    return make_buffer(np.stack([v, v, v], axis=-1))


def diverse_palette() -> PixelBuffer:
    """50x50 image whose every tenth pixel (first 2500) has a distinct 3-bit color."""
    idx = np.arange(2500) // 10
    r = (idx % 8) * 32
    g = ((idx // 8) % 8) * 32
    b = (idx // 64) * 32
    return make_buffer(np.stack([r, g, b], axis=-1).reshape(50, 50, 3))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def test_round_half_up_is_not_bankers_rounding():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(2.4999) == 2


def test_neighbor_average_omits_out_of_bounds_neighbors():
    rgb = np.zeros((3, 3, 3), dtype=np.int32)
    rgb[0, 1] = [30, 30, 30]    # right of the corner
    rgb[1, 0] = [90, 90, 90]    # below the corner
    avg = neighbor_average(rgb, np.array([0]), np.array([0]))
    # only two valid neighbors: (30 + 90) / 2
    assert avg[0].tolist() == [60.0, 60.0, 60.0]


def test_neighbor_average_of_single_pixel_is_itself():
    rgb = np.array([[[10, 20, 30]]], dtype=np.int32)
    avg = neighbor_average(rgb, np.array([0]), np.array([0]))
    assert avg[0].tolist() == [10.0, 20.0, 30.0]


def test_pixel_buffer_is_read_only():
    buf = gray(4, 4)
    assert buf.data.size == 4 * 4 * 4
    with pytest.raises(ValueError):
        buf.pixels[0, 0, 0] = 1


# ---------------------------------------------------------------------------
# Pixel anomalies
# ---------------------------------------------------------------------------

def test_pixel_anomalies_none_on_uniform_image():
    res = PixelAnomalyDetector(np.random.default_rng(0)).detect(gray(), FACTS)
    assert res.severity == 0
    assert res.detected is False
    assert res.description == "No significant pixel anomalies detected"


def test_pixel_anomalies_saturate_on_checkerboard():
    res = PixelAnomalyDetector(np.random.default_rng(0)).detect(checkerboard(), FACTS)
    assert res.severity == 100
    assert res.detected is True
    assert res.description == "1000 pixel discontinuities detected indicating potential manipulation"


def test_pixel_anomalies_seeded_runs_are_reproducible():
    rng_img = np.random.default_rng(3)
    buf = make_buffer(rng_img.integers(0, 256, size=(40, 40, 3)))
    a = PixelAnomalyDetector(np.random.default_rng(11)).detect(buf, FACTS)
    b = PixelAnomalyDetector(np.random.default_rng(11)).detect(buf, FACTS)
    assert a == b


# ---------------------------------------------------------------------------
# Lighting
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("h,w", [(1, 1), (7, 3), (64, 64)])
def test_uniform_gray_lighting_is_fully_consistent(h, w):
    res = LightingDetector().detect(gray(h, w), FACTS)
    assert res.score == 100
    assert res.consistent is True


def test_lighting_black_white_split_is_inconsistent():
    rgb = np.zeros((10, 10, 3), dtype=np.uint8)
    rgb[:, 5:] = 255
    res = LightingDetector().detect(make_buffer(rgb), FACTS)
    # std = 127.5 -> normalised 0.5 -> 100 - 100 = 0
    assert res.score == 0
    assert res.consistent is False
    assert "compositing" in res.description


def test_brightness_stats_population_variance():
    rgb = np.zeros((1, 2, 3), dtype=np.uint8)
    rgb[0, 1] = [30, 60, 90]   # brightness 60
    mean, var = brightness_stats(make_buffer(rgb))
    assert mean == pytest.approx(30.0)
    assert var == pytest.approx(900.0)


# ---------------------------------------------------------------------------
# AI artifacts
# ---------------------------------------------------------------------------

def test_ai_artifacts_detected_on_flat_image():
    res = AIArtifactDetector(np.random.default_rng(1)).detect(gray(), FACTS)
    assert res.confidence == 100
    assert res.detected is True


def test_ai_artifacts_not_detected_on_noise():
    rng_img = np.random.default_rng(5)
    buf = make_buffer(rng_img.integers(0, 256, size=(64, 64, 3)))
    res = AIArtifactDetector(np.random.default_rng(2)).detect(buf, FACTS)
    assert res.detected is False
    assert res.confidence < 20
    assert res.description == "No significant AI generation artifacts found"


def test_ai_symmetry_counts_matching_edge_columns():
    rgb = np.zeros((20, 20, 3), dtype=np.uint8)
    rgb[:, -1] = 200   # right edge differs from left edge on every row
    det = AIArtifactDetector()
    assert det.symmetry_percent(make_buffer(rgb), np.random.default_rng(0)) == 0.0
    assert det.symmetry_percent(gray(20, 20), np.random.default_rng(0)) == 100.0


# ---------------------------------------------------------------------------
# Semantic diversity
# ---------------------------------------------------------------------------

def test_semantic_single_color_is_not_logical():
    res = SemanticDetector().detect(gray(), FACTS)
    assert res.score == 0
    assert res.logical is False
    assert res.description == "Limited color diversity may indicate synthetic generation"


def test_semantic_full_palette_caps_at_100():
    buf = diverse_palette()
    assert distinct_quantized_colors(buf) == 250
    res = SemanticDetector().detect(buf, FACTS)
    assert res.score == 100
    assert res.logical is True


def test_semantic_only_scans_start_of_buffer():
    rgb = np.zeros((100, 100, 3), dtype=np.uint8)
    rgb[50:] = 255   # far beyond the first 2500 pixels
    assert distinct_quantized_colors(make_buffer(rgb)) == 1


def test_semantic_tiny_buffer():
    res = SemanticDetector().detect(gray(3, 3), FACTS)
    assert res.score == 0


# ---------------------------------------------------------------------------
# All detectors
# ---------------------------------------------------------------------------

def test_all_scores_bounded_on_random_images():
    rng = np.random.default_rng(42)
    for shape in [(1, 1), (2, 5), (31, 17), (80, 120)]:
        buf = make_buffer(rng.integers(0, 256, size=shape + (3,)))
        for det in default_detectors(np.random.default_rng(7)):
            res = det.detect(buf, FACTS)
            for key in ("severity", "score", "confidence"):
                if hasattr(res, key):
                    assert 0 <= getattr(res, key) <= 100


def test_default_detectors_order_and_names():
    names = [d.name for d in default_detectors()]
    assert names == ["pixel_anomalies", "lighting_shadows", "ai_artifacts", "metadata", "semantic_logic"]


def test_signal_result_base_is_abstract():
    with pytest.raises(TypeError):
        SignalResult(description="x")


@pytest.mark.parametrize("detector_cls", [PixelAnomalyDetector, AIArtifactDetector])
def test_sampling_detectors_do_not_widen_whole_image(detector_cls):
    # 2000x1500 RGBA: widening all RGB channels to int32 would need ~36 MB
    buf = gray(1500, 2000)
    det = detector_cls(np.random.default_rng(0))
    tracemalloc.start()
    try:
        det.detect(buf, FACTS)
        _, peak = tracemalloc.get_traced_memory()
    finally:
        tracemalloc.stop()
    assert peak < 4 * 1024 * 1024
