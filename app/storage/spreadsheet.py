# backend/app/storage/spreadsheet.py
"""
Spreadsheet persistence for material submissions.

The workbook holds three sheets, each starting with a header row:

- Submissions: one flat row per submission (see Submission.to_spreadsheet_row)
- Materials: one row per material composition line
- Validation Sources: one row per self-validation source

Every write loads the workbook, rewrites the affected sheets and saves the
whole file again. Reads reuse a cached workbook until the file's mtime changes.
"""

from __future__ import annotations

import csv
import io
import json
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from openpyxl import Workbook, load_workbook

from app.models.submission import SUBMISSION_HEADERS, Submission, new_submission_id
from utils.logger import get_logger

logger = get_logger(__name__)

SUBMISSIONS_SHEET = "Submissions"
MATERIALS_SHEET = "Materials"
SOURCES_SHEET = "Validation Sources"
SHEETS = (SUBMISSIONS_SHEET, MATERIALS_SHEET, SOURCES_SHEET)

MATERIAL_HEADERS = [
    "Submission ID",
    "Submission Date",
    "Production Lot/Batch No.",
    "Composition Material",
    "Percentage",
    "Sustainable",
    "Sustainability Claim",
    "Feedstock Type",
]

SOURCE_HEADERS = [
    "Submission ID",
    "Production Lot/Batch No.",
    "Source #",
    "Kgs",
    "Feedstock Type",
    "Feedstock Source Type",
    "Source Name",
    "Address",
    "Source Certification",
    "Source Invoice No.",
    "Source Invoice Date",
    "Invoice File",
    "Packing List File",
    "Proof of Delivery File",
    "Lab Testing File",
    "Certificates",
    "Other Documents",
]


class SubmissionNotFound(LookupError):
    pass


class SpreadsheetStorage:
    def __init__(self, file_path: str | Path):
        self.file_path = Path(file_path)
        self._cache: Workbook | None = None
        self._mtime: float | None = None
        self.file_path.parent.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Workbook I/O
    # ------------------------------------------------------------------

    def _new_workbook(self) -> Workbook:
        wb = Workbook()
        wb.remove(wb.active)
        for name in SHEETS:
            wb.create_sheet(name)
        return wb

    def _load_workbook(self) -> Workbook:
        """Workbook for reading; cached until the file's mtime changes."""
        if not self.file_path.exists():
            return self._new_workbook()

        mtime = self.file_path.stat().st_mtime
        if self._cache is None or self._mtime != mtime:
            self._cache = load_workbook(self.file_path)
            self._mtime = mtime
        return self._cache

    @contextmanager
    def _editing(self) -> Iterator[Workbook]:
        """Fresh workbook for a write, saved on exit; the read cache is dropped either way."""
        wb = load_workbook(self.file_path) if self.file_path.exists() else self._new_workbook()
        try:
            yield wb
            wb.save(self.file_path)
        finally:
            self._cache = None
            self._mtime = None

    @staticmethod
    def _sheet(wb: Workbook, name: str):
        if name not in wb.sheetnames:
            return wb.create_sheet(name)
        return wb[name]

    @staticmethod
    def _read_rows(ws) -> list[list[Any]]:
        return [
            list(row)
            for row in ws.iter_rows(values_only=True)
            if any(cell is not None for cell in row)
        ]

    @staticmethod
    def _write_rows(wb: Workbook, name: str, rows: list[list[Any]]) -> None:
        """Replace the sheet wholesale, keeping its position in the workbook."""
        index = wb.sheetnames.index(name) if name in wb.sheetnames else len(wb.sheetnames)
        if name in wb.sheetnames:
            wb.remove(wb[name])
        ws = wb.create_sheet(name, index)
        for row in rows:
            ws.append(row)

    def _append(self, wb: Workbook, sheet: str, headers: list[str], new_rows: list[list[Any]]) -> None:
        rows = self._read_rows(self._sheet(wb, sheet))
        if not rows:
            rows.append(list(headers))
        rows.extend(new_rows)
        self._write_rows(wb, sheet, rows)

    def _remove(self, wb: Workbook, sheet: str, submission_id: str) -> int:
        """Drop every data row of `sheet` keyed by `submission_id`; return how many went."""
        rows = self._read_rows(self._sheet(wb, sheet))
        if not rows:
            return 0
        header, data = rows[0], rows[1:]
        kept = [r for r in data if r[0] != submission_id]
        self._write_rows(wb, sheet, [header] + kept)
        return len(data) - len(kept)

    # ------------------------------------------------------------------
    # Row builders
    # ------------------------------------------------------------------

    @staticmethod
    def _material_rows(submission: Submission) -> list[list[Any]]:
        return [
            [
                submission.id,
                submission.submissionDate,
                submission.productionLotBatchNo,
                m.compositionMaterial,
                m.percentage,
                "Yes" if m.sustainable else "No",
                m.sustainabilityClaim or "",
                m.feedstockRecycledMaterials or "",
            ]
            for m in submission.materials
        ]

    @staticmethod
    def _source_rows(submission: Submission) -> list[list[Any]]:
        if submission.validationMethod != "SelfValidation" or not submission.selfValidation:
            return []
        return [
            [
                submission.id,
                submission.productionLotBatchNo,
                index,
                s.kgs,
                s.feedstockType,
                s.feedstockSourceType,
                s.sourceName,
                s.address,
                s.sourceCertification,
                s.sourceInvoiceNo,
                s.sourceInvoiceDate,
                s.invoiceFile,
                s.packingListFile,
                s.proofOfDeliveryFile,
                s.labTestingFile,
                json.dumps([c.model_dump() for c in s.certificates]),
                json.dumps([d.model_dump() for d in s.otherDocuments]),
            ]
            for index, s in enumerate(submission.selfValidation.sources, start=1)
        ]

    def _add_detail_rows(self, wb: Workbook, submission: Submission) -> None:
        self._append(wb, MATERIALS_SHEET, MATERIAL_HEADERS, self._material_rows(submission))
        sources = self._source_rows(submission)
        if sources:
            self._append(wb, SOURCES_SHEET, SOURCE_HEADERS, sources)

    # ------------------------------------------------------------------
    # Submissions
    # ------------------------------------------------------------------

    def save_submission(self, submission: Submission) -> str:
        if not submission.id:
            submission.id = new_submission_id()

        row = submission.to_spreadsheet_row()
        with self._editing() as wb:
            self._append(wb, SUBMISSIONS_SHEET, list(row.keys()), [list(row.values())])
            self._add_detail_rows(wb, submission)

        logger.info("submission_saved", submission_id=submission.id, materials=len(submission.materials))
        return submission.id

    def get_all_submissions(self) -> list[dict[str, Any]]:
        if not self.file_path.exists():
            return []
        wb = self._load_workbook()
        rows = self._read_rows(self._sheet(wb, SUBMISSIONS_SHEET))
        if not rows:
            return []
        header = rows[0]
        return [dict(zip(header, row)) for row in rows[1:]]

    def get_submission(self, submission_id: str) -> dict[str, Any] | None:
        return next(
            (s for s in self.get_all_submissions() if s.get("Submission ID") == submission_id),
            None,
        )

    def search_submissions(self, criteria: dict[str, Any]) -> list[dict[str, Any]]:
        """Exact-match filter; criteria with a None value are ignored."""
        active = {k: v for k, v in criteria.items() if v is not None}
        return [
            s for s in self.get_all_submissions()
            if all(s.get(key) == value for key, value in active.items())
        ]

    def update_submission(self, submission_id: str, submission: Submission) -> str:
        existing = self.get_submission(submission_id)
        if existing is None:
            raise SubmissionNotFound(submission_id)

        submission.id = submission_id
        submission.submissionDate = existing.get("Submission Date") or submission.submissionDate

        new_row = submission.to_spreadsheet_row()
        with self._editing() as wb:
            rows = self._read_rows(self._sheet(wb, SUBMISSIONS_SHEET))
            header = rows[0]
            rows = [header] + [
                [new_row.get(h) for h in header] if r[0] == submission_id else r
                for r in rows[1:]
            ]
            self._write_rows(wb, SUBMISSIONS_SHEET, rows)

            self._remove(wb, MATERIALS_SHEET, submission_id)
            self._remove(wb, SOURCES_SHEET, submission_id)
            self._add_detail_rows(wb, submission)

        logger.info("submission_updated", submission_id=submission_id)
        return submission_id

    def delete_submission(self, submission_id: str) -> None:
        if self.get_submission(submission_id) is None:
            raise SubmissionNotFound(submission_id)

        with self._editing() as wb:
            for sheet in SHEETS:
                self._remove(wb, sheet, submission_id)

        logger.info("submission_deleted", submission_id=submission_id)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_csv(self) -> str:
        wb = self._load_workbook()
        rows = self._read_rows(self._sheet(wb, SUBMISSIONS_SHEET))
        if not rows:
            rows = [SUBMISSION_HEADERS]
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        for row in rows:
            writer.writerow(["" if cell is None else cell for cell in row])
        return buffer.getvalue()

    def export_csv(self, output_path: str | Path) -> Path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.to_csv(), encoding="utf-8", newline="")
        return output_path

    def export_xlsx(self) -> bytes:
        wb = self._load_workbook()
        buffer = io.BytesIO()
        wb.save(buffer)
        return buffer.getvalue()
