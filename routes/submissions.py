from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse, Response

from app.auth.deps import get_storage
from app.models.submission import Submission
from app.storage.spreadsheet import SpreadsheetStorage, SubmissionNotFound
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["submissions"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _invalid(errors: list) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Validation failed", "errors": errors})


@router.post("/submissions")
async def create_submission(submission: Submission, storage: SpreadsheetStorage = Depends(get_storage)):
    errors = submission.validate_fields()
    if errors:
        return _invalid(errors)

    try:
        submission_id = storage.save_submission(submission)
    except Exception as e:
        logger.error("save_submission_failed", error=str(e))
        raise HTTPException(status_code=500, detail=str(e))

    return {"success": True, "message": "Submission saved", "submissionId": submission_id}


@router.get("/submissions")
async def list_submissions(storage: SpreadsheetStorage = Depends(get_storage)):
    data = storage.get_all_submissions()
    return {"success": True, "count": len(data), "data": data}


@router.post("/submissions/search")
async def search_submissions(
    criteria: Optional[Dict[str, Any]] = Body(None),
    storage: SpreadsheetStorage = Depends(get_storage),
):
    data = storage.search_submissions(criteria or {})
    return {"success": True, "count": len(data), "data": data}


@router.get("/submissions/{submission_id}")
async def get_submission(submission_id: str, storage: SpreadsheetStorage = Depends(get_storage)):
    data = storage.get_submission(submission_id)
    if data is None:
        raise HTTPException(status_code=404, detail="Submission not found")
    return {"success": True, "data": data}


@router.put("/submissions/{submission_id}")
async def update_submission(
    submission_id: str,
    submission: Submission,
    storage: SpreadsheetStorage = Depends(get_storage),
):
    errors = submission.validate_fields()
    if errors:
        return _invalid(errors)

    try:
        storage.update_submission(submission_id, submission)
    except SubmissionNotFound:
        raise HTTPException(status_code=404, detail="Submission not found")
    return {"success": True, "submissionId": submission_id}


@router.delete("/submissions/{submission_id}")
async def delete_submission(submission_id: str, storage: SpreadsheetStorage = Depends(get_storage)):
    try:
        storage.delete_submission(submission_id)
    except SubmissionNotFound:
        raise HTTPException(status_code=404, detail="Submission not found")
    return {"success": True}


# =====================================================
# EXPORT
# =====================================================

@router.get("/export/csv")
async def export_csv(storage: SpreadsheetStorage = Depends(get_storage)):
    return Response(
        content=storage.to_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="submissions.csv"'},
    )


@router.get("/export/xlsx")
async def export_xlsx(storage: SpreadsheetStorage = Depends(get_storage)):
    return Response(
        content=storage.export_xlsx(),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="submissions.xlsx"'},
    )
