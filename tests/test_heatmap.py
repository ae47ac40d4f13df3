"""Tests for the decorative heatmap synthesizer."""

import io

import numpy as np
import pytest
from PIL import Image

from scoring import Heatmap, HeatmapRegion, render_overlay, synthesize_heatmap
from scoring.heatmap import region_box, region_count


@pytest.mark.parametrize("sev,conf,expected", [
    (0, 0, 0),
    (19, 0, 0),
    (10, 10, 1),
    (50, 50, 5),
    (79, 80, 7),
    (100, 100, 8),
])
def test_region_count(sev, conf, expected):
    assert region_count(sev, conf) == expected


def test_region_bounds():
    hm = synthesize_heatmap(100, 100, rng=np.random.default_rng(0))
    assert len(hm.regions) == 8
    for r in hm.regions:
        assert 0 <= r.x < 0.8
        assert 0 <= r.y < 0.8
        assert 0.1 <= r.width < 0.25
        assert 0.1 <= r.height < 0.25
        assert 0.3 <= r.intensity < 1.0
        assert r.x + r.width <= 1.05
        assert r.y + r.height <= 1.05


def test_empty_heatmap():
    assert synthesize_heatmap(0, 0).to_dict() == {"regions": []}


def test_seeded_heatmap_is_reproducible():
    a = synthesize_heatmap(60, 40, rng=np.random.default_rng(9))
    b = synthesize_heatmap(60, 40, rng=np.random.default_rng(9))
    assert a == b
    assert len(a.regions) == 5


def test_to_dict_shape():
    d = synthesize_heatmap(20, 0, rng=np.random.default_rng(1)).to_dict()
    assert list(d) == ["regions"]
    assert set(d["regions"][0]) == {"x", "y", "width", "height", "intensity"}


# ---------------------------------------------------------------------------
# Overlay rendering
# ---------------------------------------------------------------------------

def _white_png(w=100, h=50) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (w, h), (255, 255, 255)).save(buf, format="PNG")
    return buf.getvalue()


def test_region_box_uses_fractional_geometry():
    r = HeatmapRegion(x=0.2, y=0.4, width=0.1, height=0.2, intensity=1.0)
    assert region_box(r, 100, 50) == (20, 20, 29, 29)


def test_region_box_clips_to_image():
    r = HeatmapRegion(x=0.79, y=0.79, width=0.25, height=0.25, intensity=0.5)
    assert region_box(r, 100, 100) == (79, 79, 99, 99)


def test_overlay_tints_only_region_pixels():
    hm = Heatmap(regions=[HeatmapRegion(x=0.2, y=0.4, width=0.1, height=0.2, intensity=1.0)])
    out = np.array(render_overlay(_white_png(), hm))
    assert out.shape == (50, 100, 4)

    inside = out[20:30, 20:30]
    # white blended with red at alpha 0.3: red stays high, green/blue drop
    assert (inside[..., 0] > 245).all()
    assert (inside[..., 1] < 230).all() and (inside[..., 1] > 160).all()

    mask = np.zeros((50, 100), dtype=bool)
    mask[20:30, 20:30] = True
    assert (out[~mask][:, :3] == 255).all()


def test_overlay_opacity_scales_with_intensity():
    strong = Heatmap(regions=[HeatmapRegion(0.0, 0.0, 0.5, 0.5, intensity=1.0)])
    faint = Heatmap(regions=[HeatmapRegion(0.0, 0.0, 0.5, 0.5, intensity=0.3)])
    g_strong = np.array(render_overlay(_white_png(), strong))[5, 5, 1]
    g_faint = np.array(render_overlay(_white_png(), faint))[5, 5, 1]
    assert g_strong < g_faint < 255


def test_empty_overlay_leaves_image_unchanged():
    out = np.array(render_overlay(Image.new("RGB", (8, 8), (10, 20, 30)), Heatmap()))
    assert (out == [10, 20, 30, 255]).all()
