"""Submission form validation, spreadsheet storage and the submission endpoints."""

from __future__ import annotations

import csv
import io
import json

import pytest
from openpyxl import Workbook, load_workbook

from app.models.submission import SUBMISSION_HEADERS, Submission
from app.storage.spreadsheet import (
    MATERIALS_SHEET,
    SOURCES_SHEET,
    SUBMISSIONS_SHEET,
    SubmissionNotFound,
)


def _form(**overrides) -> dict:
    form = {
        "date": "2024-03-01",
        "productionFacility": "Tiruppur Mill 4",
        "valueChainProcessMain": "Spinning",
        "valueChainProcessSub": "Ring Spinning",
        "awareTokenType": "Cotton",
        "materialSpecification": "Ne 30/1 combed",
        "mainColorSelected": "Natural",
        "productionLotBatchNo": "LOT-0001",
        "totalWeightKgs": "1200",
        "materials": [
            {"compositionMaterial": "Cotton", "percentage": 95, "sustainable": True, "sustainabilityClaim": "Organic"},
            {"compositionMaterial": "Elastane", "percentage": 5},
        ],
        "validationMethod": "SelfValidation",
        "selfValidation": {
            "totalSourceInput": 1200,
            "sources": [
                {"kgs": 700, "sourceName": "Farm A", "certificates": [{"name": "gots.pdf"}]},
                {"kgs": 500, "sourceName": "Farm B"},
            ],
        },
    }
    form.update(overrides)
    return form


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------

def test_complete_form_has_no_errors():
    assert Submission(**_form()).validate_fields() == []


def test_missing_fields_are_reported():
    errors = Submission().validate_fields()
    assert "Date is required" in errors
    assert "Production Facility is required" in errors
    assert "At least one material composition is required" in errors
    assert "Validation method is required" in errors
    assert "Type of Tracer is required when tracer is added" not in errors


def test_tracer_type_required_when_tracer_added():
    errors = Submission(**_form(tracerAdded=True)).validate_fields()
    assert errors == ["Type of Tracer is required when tracer is added"]
    assert Submission(**_form(tracerAdded=True, typeOfTracer="Aware")).validate_fields() == []


def test_spreadsheet_row_mapping():
    sub = Submission(**_form(id="SUB-1", wetProcessing=True))
    row = sub.to_spreadsheet_row()
    assert list(row) == SUBMISSION_HEADERS
    assert row["Submission ID"] == "SUB-1"
    assert row["Production Facility"] == "Tiruppur Mill 4"
    assert row["Wet Processing"] == "Yes"
    assert row["Tracer Added"] == "No"
    assert json.loads(row["Materials"])[0]["sustainabilityClaim"] == "Organic"
    assert json.loads(row["Certificates"]) == {"environmental": [], "social": [], "chemical": []}


def test_certificate_status_defaults_to_pending():
    sub = Submission(**_form(certificates={"social": [{"name": "SA8000"}]}))
    assert sub.certificates.social[0].status == "PENDING"


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

def test_empty_storage(storage):
    assert storage.get_all_submissions() == []
    assert storage.get_submission("SUB-X") is None
    assert next(csv.reader(io.StringIO(storage.to_csv()))) == SUBMISSION_HEADERS


def test_save_writes_all_three_sheets(storage):
    sub_id = storage.save_submission(Submission(**_form()))
    assert sub_id.startswith("SUB-")

    wb = load_workbook(storage.file_path)
    assert wb.sheetnames == [SUBMISSIONS_SHEET, MATERIALS_SHEET, SOURCES_SHEET]
    materials = list(wb[MATERIALS_SHEET].iter_rows(values_only=True))
    assert len(materials) == 3
    assert materials[1][0] == sub_id
    assert materials[1][3] == "Cotton"
    assert materials[1][5] == "Yes"
    sources = list(wb[SOURCES_SHEET].iter_rows(values_only=True))
    assert [r[2] for r in sources[1:]] == [1, 2]
    assert [r[6] for r in sources[1:]] == ["Farm A", "Farm B"]


def test_non_self_validation_skips_sources(storage):
    storage.save_submission(Submission(**_form(validationMethod="STCP", selfValidation=None, stcpFullName="J. Doe")))
    wb = load_workbook(storage.file_path)
    rows = wb[SOURCES_SHEET].iter_rows(values_only=True)
    assert not any(cell is not None for row in rows for cell in row)


def test_get_and_search(storage):
    first = storage.save_submission(Submission(**_form()))
    second = storage.save_submission(Submission(**_form(productionFacility="Dhaka Dye House")))

    assert [s["Submission ID"] for s in storage.get_all_submissions()] == [first, second]
    assert storage.get_submission(second)["Production Facility"] == "Dhaka Dye House"

    found = storage.search_submissions({"Production Facility": "Dhaka Dye House", "Date": None})
    assert [s["Submission ID"] for s in found] == [second]
    assert storage.search_submissions({"Production Facility": "dhaka dye house"}) == []
    assert len(storage.search_submissions({})) == 2


def test_update_keeps_id_and_submission_date(storage):
    sub_id = storage.save_submission(Submission(**_form()))
    original_date = storage.get_submission(sub_id)["Submission Date"]

    updated = Submission(**_form(productionFacility="Mill 5", materials=[{"compositionMaterial": "Hemp", "percentage": 100}]))
    storage.update_submission(sub_id, updated)

    row = storage.get_submission(sub_id)
    assert row["Production Facility"] == "Mill 5"
    assert row["Submission Date"] == original_date
    assert len(storage.get_all_submissions()) == 1

    wb = load_workbook(storage.file_path)
    materials = list(wb[MATERIALS_SHEET].iter_rows(values_only=True))[1:]
    assert [m[3] for m in materials] == ["Hemp"]


def test_update_missing_raises(storage):
    with pytest.raises(SubmissionNotFound):
        storage.update_submission("SUB-NOPE", Submission(**_form()))


def test_delete_removes_detail_rows(storage):
    keep = storage.save_submission(Submission(**_form()))
    drop = storage.save_submission(Submission(**_form(productionLotBatchNo="LOT-0002")))

    storage.delete_submission(drop)

    assert [s["Submission ID"] for s in storage.get_all_submissions()] == [keep]
    wb = load_workbook(storage.file_path)
    for sheet in (MATERIALS_SHEET, SOURCES_SHEET):
        ids = {r[0] for r in list(wb[sheet].iter_rows(values_only=True))[1:]}
        assert ids == {keep}

    with pytest.raises(SubmissionNotFound):
        storage.delete_submission(drop)


def test_export_csv_file(storage, tmp_path):
    sub_id = storage.save_submission(Submission(**_form()))
    path = storage.export_csv(tmp_path / "out" / "submissions.csv")
    rows = list(csv.reader(path.open(encoding="utf-8", newline="")))
    assert rows[0] == SUBMISSION_HEADERS
    assert rows[1][0] == sub_id


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------

def test_create_submission_validation_failed(client):
    resp = client.post("/api/submissions", json={"date": "2024-03-01"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Validation failed"
    assert "Production Facility is required" in body["errors"]


def test_submission_crud(client):
    resp = client.post("/api/submissions", json=_form())
    assert resp.status_code == 200
    sub_id = resp.json()["submissionId"]

    resp = client.get("/api/submissions")
    assert resp.json()["count"] == 1
    assert resp.json()["data"][0]["Submission ID"] == sub_id

    resp = client.get(f"/api/submissions/{sub_id}")
    assert resp.json()["data"]["Production Lot/Batch No."] == "LOT-0001"

    resp = client.put(f"/api/submissions/{sub_id}", json=_form(productionLotBatchNo="LOT-9"))
    assert resp.status_code == 200
    assert client.get(f"/api/submissions/{sub_id}").json()["data"]["Production Lot/Batch No."] == "LOT-9"

    resp = client.post("/api/submissions/search", json={"Production Lot/Batch No.": "LOT-9"})
    assert resp.json()["count"] == 1

    resp = client.delete(f"/api/submissions/{sub_id}")
    assert resp.json() == {"success": True}
    assert client.get("/api/submissions").json()["count"] == 0


def test_missing_submission_is_404(client):
    assert client.get("/api/submissions/SUB-NOPE").json() == {"error": "Submission not found"}
    assert client.get("/api/submissions/SUB-NOPE").status_code == 404
    assert client.put("/api/submissions/SUB-NOPE", json=_form()).status_code == 404
    assert client.delete("/api/submissions/SUB-NOPE").status_code == 404


def test_exports(client):
    client.post("/api/submissions", json=_form())

    resp = client.get("/api/export/csv")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "attachment" in resp.headers["content-disposition"]
    assert resp.text.splitlines()[0].startswith("Submission ID,Submission Date")

    resp = client.get("/api/export/xlsx")
    assert resp.status_code == 200
    wb = load_workbook(io.BytesIO(resp.content))
    assert wb[SUBMISSIONS_SHEET].max_row == 2


def test_blank_choices_are_treated_as_unset(client):
    form = _form(typeOfTracer="", materials=[
        {"compositionMaterial": "Cotton", "percentage": 100, "sustainabilityClaim": "", "feedstockRecycledMaterials": ""},
    ])
    resp = client.post("/api/submissions", json=form)
    assert resp.status_code == 200, resp.text

    sub = Submission(**form)
    assert sub.typeOfTracer is None
    assert sub.materials[0].sustainabilityClaim is None


def test_blank_validation_method_fails_form_validation(client):
    resp = client.post("/api/submissions", json=_form(validationMethod=""))
    assert resp.status_code == 400
    assert resp.json()["errors"] == ["Validation method is required"]


def test_malformed_body_uses_error_shape(client):
    resp = client.post("/api/submissions", json=_form(typeOfTracer="Laser"))
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Invalid request"
    assert any(e.startswith("body.typeOfTracer") for e in body["errors"])


def test_failed_write_does_not_leak_into_reads(storage, monkeypatch):
    first = storage.save_submission(Submission(**_form()))
    assert len(storage.get_all_submissions()) == 1

    def disk_full(self, filename):
        raise OSError("disk full")

    monkeypatch.setattr(Workbook, "save", disk_full)
    with pytest.raises(OSError):
        storage.save_submission(Submission(**_form(productionLotBatchNo="LOT-0002")))
    with pytest.raises(OSError):
        storage.delete_submission(first)
    monkeypatch.undo()

    assert [s["Submission ID"] for s in storage.get_all_submissions()] == [first]
