import math
import pytest
from cropclass.contracts.core import RGB8, ClassLabel, Coordinates, FeatureVector
from tests.factories import make_features

def test_rgb8_and_label():
    col = RGB8(r=10, g=20, b=30)
    lab = ClassLabel(id=1, name="  Cacao ", color=col)
    assert lab.name == "Cacao"
    assert lab.title == "Cacao"
    assert lab.color.to_hex() == "#0A141E"

def test_label_empty_name_fails():
    with pytest.raises(ValueError):
        ClassLabel(id=1, name="   ")

@pytest.mark.parametrize("lat,lng", [(91, 0), (-90.5, 0), (0, 180.01), (0, -181)])
def test_coordinates_out_of_range(lat, lng):
    with pytest.raises(ValueError):
        Coordinates(lat=lat, lng=lng)

def test_coordinates_bounds_inclusive():
    c = Coordinates(lat=-90, lng=180)
    assert (c.lat, c.lng) == (-90.0, 180.0)

def test_feature_vector_not_clamped_but_reports_violations():
    fv = make_features(ndvi=1.2, area_ha=0.0)
    assert fv.ndvi == 1.2
    names = [name for name, _, _ in fv.domain_violations()]
    assert names == ["ndvi", "area_ha"]

def test_feature_vector_nan_is_violation():
    fv = make_features(evi=math.nan)
    assert [n for n, _, _ in fv.domain_violations()] == ["evi"]

def test_feature_vector_in_domain():
    assert make_features(ndvi=-1.0, evi=1.0, savi=0.0, std_red=0.0).domain_violations() == []

def test_feature_vector_immutable():
    fv = make_features()
    with pytest.raises(ValueError):
        fv.ndvi = 0.1
