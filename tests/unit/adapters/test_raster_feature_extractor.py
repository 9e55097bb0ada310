import numpy as np
import pytest
from cropclass.adapters.local_image_store import LocalImageStore
from cropclass.adapters.raster_feature_extractor import RasterFeatureExtractor, ensure_float01
from cropclass.contracts.errors import NotFoundError
from tests.factories import write_cir_png, write_interleaved_tif, write_multiband_tif

@pytest.fixture
def store(tmp_path):
    return LocalImageStore(root=tmp_path)

def test_ensure_float01_scales():
    assert ensure_float01(np.array([0, 255], dtype=np.uint8)).tolist() == [0.0, 1.0]
    assert ensure_float01(np.array([0, 5000, 12000], dtype=np.uint16)).tolist() == [0.0, 0.5, 1.0]
    assert ensure_float01(np.array([0.2, 0.4], dtype=np.float32)).tolist() == pytest.approx([0.2, 0.4])

def test_extract_multiband_tif(store, tmp_path):
    write_multiband_tif(tmp_path / "a.tif", blue=300, green=500, red=400, nir=4000, w=10, h=10)
    fv = RasterFeatureExtractor(store=store, pixel_size_m=10.0).extract("a.tif")
    assert fv.ndvi == pytest.approx(0.818, abs=1e-3)
    assert fv.savi == pytest.approx(0.574, abs=1e-3)
    assert fv.evi == pytest.approx(0.636, abs=1e-3)
    assert fv.mean_red == pytest.approx(0.04)
    assert fv.mean_nir == pytest.approx(0.4)
    assert fv.std_red == 0.0
    assert fv.area_ha == pytest.approx(1.0)
    assert fv.domain_violations() == []

def test_extract_clips_evi(store, tmp_path):
    write_cir_png(tmp_path / "cir.png", nir=230, red=20, green=60)
    fv = RasterFeatureExtractor(store=store).extract("cir.png")
    assert fv.ndvi > 0.8
    assert fv.evi == 1.0

def test_extract_is_deterministic(store, tmp_path):
    rng = np.random.default_rng(7)
    from PIL import Image
    Image.fromarray(rng.integers(0, 255, size=(16, 16, 3), dtype=np.uint8)).save(tmp_path / "n.png")
    ex = RasterFeatureExtractor(store=store)
    assert ex.extract("n.png") == ex.extract("n.png")

def test_area_uses_pixel_size(store, tmp_path):
    write_multiband_tif(tmp_path / "b.tif", w=20, h=5)
    fv = RasterFeatureExtractor(store=store, pixel_size_m=20.0).extract("b.tif")
    assert fv.area_ha == pytest.approx(20 * 5 * 400 / 10_000)

def test_missing_image(store):
    with pytest.raises(NotFoundError):
        RasterFeatureExtractor(store=store).extract("nope.tif")

def test_unreadable_image(store, tmp_path):
    (tmp_path / "bad.png").write_bytes(b"not an image")
    with pytest.raises(NotFoundError) as ei:
        RasterFeatureExtractor(store=store).extract("bad.png")
    assert ei.value.code == "NOT_FOUND"

def test_single_band_tif_rejected(store, tmp_path):
    import tifffile
    tifffile.imwrite(tmp_path / "g.tif", np.zeros((6, 6), dtype=np.uint16))
    with pytest.raises(NotFoundError, match="3 bandas"):
        RasterFeatureExtractor(store=store).extract("g.tif")

@pytest.mark.parametrize("w,h", [(3, 3), (2, 8), (1, 5)])
def test_small_planar_tif_keeps_band_axis(store, tmp_path, w, h):
    write_multiband_tif(tmp_path / "p.tif", w=w, h=h)
    fv = RasterFeatureExtractor(store=store, pixel_size_m=10.0).extract("p.tif")
    assert fv.ndvi == pytest.approx(0.818, abs=1e-3)
    assert fv.mean_red == pytest.approx(0.04)
    assert fv.area_ha == pytest.approx(w * h * 100 / 10_000)

@pytest.mark.parametrize("w,h", [(10, 10), (6, 2), (3, 4)])
def test_interleaved_tif(store, tmp_path, w, h):
    write_interleaved_tif(tmp_path / "i.tif", w=w, h=h)
    fv = RasterFeatureExtractor(store=store).extract("i.tif")
    assert fv.ndvi == pytest.approx(0.818, abs=1e-3)
    assert fv.mean_nir == pytest.approx(0.4)

def test_tiny_image_area_stays_positive(store, tmp_path):
    write_multiband_tif(tmp_path / "px.tif", w=1, h=1)
    fv = RasterFeatureExtractor(store=store, pixel_size_m=0.5).extract("px.tif")
    assert fv.area_ha == pytest.approx(2.5e-5)
    assert fv.domain_violations() == []

@pytest.mark.slow
def test_decompression_bomb_is_not_found(store, tmp_path):
    from PIL import Image
    Image.new("1", (20000, 20000)).save(tmp_path / "big.png")
    with pytest.raises(NotFoundError, match="ilegibles"):
        RasterFeatureExtractor(store=store).extract("big.png")
