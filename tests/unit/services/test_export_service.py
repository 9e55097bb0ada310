import json

import pytest
from cropclass.adapters.csv_exporter import CSVExporter
from cropclass.adapters.geojson_exporter import GeoJSONExporter
from cropclass.adapters.html_report_exporter import HTMLReportExporter
from cropclass.contracts.errors import EmptyInputError, UnsupportedFormatError
from cropclass.contracts.products import ExportFormat
from cropclass.services.export_service import ExportService, file_timestamp, parse_format
from tests.factories import TS, make_result

@pytest.fixture
def service():
    return ExportService(
        formatters={
            ExportFormat.CSV: CSVExporter(),
            ExportFormat.GEOJSON: GeoJSONExporter(),
            ExportFormat.PDF: HTMLReportExporter(clock=lambda: TS),
        },
        clock=lambda: TS,
    )

@pytest.fixture
def results():
    return [make_result("Forest", 0.9, lat=5.35, lng=-4.02), make_result("Cacao", 0.5)]

def test_file_timestamp():
    assert file_timestamp(TS) == "2025-07-21T10-30-00+00-00"
    assert "." not in file_timestamp(TS.replace(microsecond=123))

@pytest.mark.parametrize("raw,fmt", [
    ("csv", ExportFormat.CSV), (" CSV ", ExportFormat.CSV),
    ("GeoJSON", ExportFormat.GEOJSON), ("pdf", ExportFormat.PDF),
    (ExportFormat.PDF, ExportFormat.PDF),
])
def test_parse_format(raw, fmt):
    assert parse_format(raw) is fmt

@pytest.mark.parametrize("raw", ["xml", "", None, "html"])
def test_parse_format_rejects(raw):
    with pytest.raises(UnsupportedFormatError) as ei:
        parse_format(raw)
    assert ei.value.allowed == ("csv", "geojson", "pdf")

def test_csv_artifact(service, results):
    a = service.export("csv", results)
    assert a.content_type == "text/csv"
    assert a.filename == "classification_results_2025-07-21T10-30-00+00-00.csv"
    assert a.size_bytes == len(a.content)
    assert a.content.decode("utf-8").count("\n") == 1 + len(results)

def test_geojson_artifact(service, results):
    a = service.export("geojson", results)
    assert a.content_type == "application/geo+json"
    assert a.filename.endswith(".geojson")
    assert len(json.loads(a.content)["features"]) == 2

def test_pdf_produces_html_report(service, results):
    a = service.export("pdf", results)
    assert a.content_type == "text/html"
    assert a.filename == "classification_report_2025-07-21T10-30-00+00-00.html"
    assert b"<!DOCTYPE html>" in a.content

def test_empty_input(service):
    with pytest.raises(EmptyInputError):
        service.export("csv", [])

def test_format_checked_before_emptiness(service):
    with pytest.raises(UnsupportedFormatError):
        service.export("xml", [])

def test_missing_formatter():
    svc = ExportService(formatters={ExportFormat.CSV: CSVExporter()}, clock=lambda: TS)
    with pytest.raises(UnsupportedFormatError) as ei:
        svc.export("geojson", [make_result()])
    assert ei.value.allowed == ("csv",)

def test_job_keeps_order(service, results):
    job = service.job("csv", results)
    assert job.format is ExportFormat.CSV
    assert list(job.results) == results
