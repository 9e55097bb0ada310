import csv
import io
import json

import pytest
from cropclass.adapters.csv_exporter import CSV_HEADERS, CSVExporter
from cropclass.adapters.geojson_exporter import GeoJSONExporter
from cropclass.adapters.html_report_exporter import HTMLReportExporter, confidence_css, summarize
from cropclass.config import DEFAULT_CLASSES
from tests.factories import TS, make_result

@pytest.fixture
def results():
    return [
        make_result("Forest", 0.9, lat=5.35, lng=-4.02, ndvi=0.91),
        make_result("Cacao", 0.5, ndvi=0.4),
        make_result("Cacao", 0.3, lat=-1.5, lng=120.25, ndvi=0.2),
    ]

# --------- CSV ---------
def test_csv_header_and_rows(results):
    text = CSVExporter().render(results)
    lines = text.splitlines()
    assert lines[0] == ",".join(f'"{h}"' for h in CSV_HEADERS)
    assert len(lines) == 1 + len(results)
    assert lines[1].startswith('1,"Forest",0.9,5,"Automatic use recommended",0.91,')

def test_csv_roundtrip(results):
    rows = list(csv.DictReader(io.StringIO(CSVExporter().render(results))))
    assert len(rows) == len(results)
    for i, (row, r) in enumerate(zip(rows, results), start=1):
        assert int(row["ID"]) == i
        assert row["PredictedClass"] == r.prediction.label
        assert float(row["NDVI"]) == r.features.ndvi
        if r.coordinates is None:
            assert row["Latitude"] == "" and row["Longitude"] == ""
        else:
            assert float(row["Latitude"]) == r.coordinates.lat
            assert float(row["Longitude"]) == r.coordinates.lng
        assert row["Timestamp"] == TS.isoformat()

def test_csv_quotes_strings_with_commas():
    r = make_result("Cacao", 0.5)
    text = CSVExporter().render([r])
    row = next(csv.DictReader(io.StringIO(text)))
    assert row["RecommendedAction"] == r.confidence_level.action

# --------- GeoJSON ---------
def test_geojson_feature_collection(results):
    doc = json.loads(GeoJSONExporter().render(results))
    assert doc["type"] == "FeatureCollection"
    assert len(doc["features"]) == len(results)
    for f in doc["features"]:
        assert f["type"] == "Feature"
        assert f["geometry"]["type"] == "Point"
        assert len(f["geometry"]["coordinates"]) == 2

def test_geojson_lng_lat_order_and_missing_coords(results):
    feats = json.loads(GeoJSONExporter().render(results))["features"]
    assert feats[0]["geometry"]["coordinates"] == [-4.02, 5.35]
    assert feats[1]["geometry"]["coordinates"] == [0, 0]
    assert feats[1]["properties"]["latitude"] == 0
    assert feats[1]["properties"]["longitude"] == 0
    props = feats[0]["properties"]
    assert props["id"] == 1
    assert props["predicted_class"] == "Forest"
    assert props["confidence"] == 0.9
    assert props["confidence_level"] == 5
    assert props["ndvi"] == 0.91

def test_geojson_indent():
    text = GeoJSONExporter().render([make_result()])
    assert text.startswith('{\n  "type": "FeatureCollection"')

# --------- HTML ---------
@pytest.mark.parametrize("c,css", [
    (0.71, "confidence-high"), (0.7, "confidence-medium"), (0.41, "confidence-medium"),
    (0.4, "confidence-low"), (0.0, "confidence-low"),
])
def test_confidence_css(c, css):
    assert confidence_css(c) == css

def test_summarize(results):
    s = summarize(results)
    assert s["total"] == 3
    assert s["mean_confidence"] == pytest.approx((0.9 + 0.5 + 0.3) / 3)
    assert list(s["counts"]) == ["Forest", "Cacao"]
    assert s["shares"]["Cacao"] == pytest.approx(2 / 3)

def test_html_report_contents(results):
    html = HTMLReportExporter(title="Report", classes=DEFAULT_CLASSES, clock=lambda: TS).render(results)
    assert html.lstrip().startswith("<!DOCTYPE html>")
    assert '<p class="stat-value" id="total">3</p>' in html
    assert '<p class="stat-value" id="mean-confidence">56.7%</p>' in html
    assert '<p class="stat-value" id="distinct-classes">2</p>' in html
    assert "Generated on 2025-07-21" in html
    assert "<strong>Cacao:</strong> 2 (66.7%)" in html
    assert html.count('class="confidence-high"') == 1
    assert html.count('class="confidence-medium"') == 1
    assert html.count('class="confidence-low"') == 1
    assert "#228B22" in html  # color de Forest

def test_html_report_escapes_labels():
    from cropclass.contracts.model import ConfidenceLevel
    r = make_result()
    evil = ConfidenceLevel(level=3, threshold=0.4, label="x", action="<script>alert(1)</script>")
    r = r.model_copy(update={"confidence_level": evil})
    html = HTMLReportExporter(clock=lambda: TS).render([r])
    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;" in html
