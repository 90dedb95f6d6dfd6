# backend/app/models/batch.py

from pydantic import BaseModel, Field
from typing import List, Optional

from app.lifecycle import role_label, status_label


class PhysicalAsset(BaseModel):
    assetId: str = ""
    material: str = ""
    composition: str = ""
    weight: str = Field("0", description="Weight in kg, kept as text like the contract does.")
    batchNumber: str = ""
    productionDate: str = ""
    expiryDate: str = ""
    color: str = ""
    colorHex: str = ""
    productionFacility: str = ""
    valueChainMain: str = ""
    valueChainSub: str = ""
    tokenType: str = ""
    materialSpec: str = ""
    mainColor: str = ""
    sustainableClaims: str = ""
    wetProcessing: str = ""


class Tracer(BaseModel):
    supplier: str = ""
    farmLocation: str = ""
    country: str = ""
    gpsCoordinates: str = ""
    certifications: str = ""
    harvestDate: str = ""
    tracerType: str = ""
    tracerName: str = ""
    tracerDate: str = ""
    tracerAdded: str = "false"


class Validation(BaseModel):
    qualityGrade: str = ""
    moistureContent: str = ""
    contamination: str = ""
    inspectionDate: str = ""
    inspector: str = ""
    labResults: str = ""
    validationType: str = ""


class Compliance(BaseModel):
    regulatoryStandards: str = ""
    sustainabilityCert: str = ""
    fairTradeCert: str = ""
    organicCert: str = ""
    carbonFootprint: str = ""
    waterUsage: str = ""
    selectedCerts: str = ""


class BatchCreate(BaseModel):
    physicalAsset: PhysicalAsset
    tracer: Tracer = Tracer()
    validation: Validation = Validation()
    compliance: Compliance = Compliance()


class RejectRequest(BaseModel):
    reason: Optional[str] = None


class CertifyRequest(BaseModel):
    certificationHash: Optional[str] = None


class BatchRecord(BaseModel):
    id: int
    physicalAsset: PhysicalAsset
    tracer: Tracer
    validation: Validation
    compliance: Compliance
    createdBy: str = ""
    createdByName: str = ""
    createdByRole: int = 0
    createdByRoleLabel: str = "Producer"
    createdAt: int = 0
    status: int = 0
    statusLabel: str = "Pending"
    approvedBy: str = ""
    approvedByName: str = ""
    approvedAt: int = 0
    rejectionReason: str = ""
    certifiedBy: str = ""
    certifiedByName: str = ""
    certifiedAt: int = 0
    certificationHash: str = ""


def batch_helper(batch: dict) -> dict:
    """Normalise a contract batch dict into the JSON shape the API returns."""
    record = BatchRecord(
        **{
            **batch,
            "statusLabel": status_label(int(batch.get("status", 0))),
            "createdByRoleLabel": role_label(int(batch.get("createdByRole", 0))),
        }
    )
    return record.model_dump()


# ==============================
# LISTING HELPERS
# ==============================

SEARCH_FIELDS = (
    ("physicalAsset", "assetId"),
    ("physicalAsset", "material"),
    ("physicalAsset", "batchNumber"),
    ("tracer", "supplier"),
    ("tracer", "country"),
)

SORT_OPTIONS = ("newest", "oldest", "status", "assetId")


def filter_batches(batches: List[dict], search: Optional[str]) -> List[dict]:
    if not search:
        return batches
    term = search.lower()
    return [
        b for b in batches
        if any(term in (b.get(group, {}).get(field) or "").lower() for group, field in SEARCH_FIELDS)
    ]


def filter_by_status(batches: List[dict], status: Optional[int]) -> List[dict]:
    if status is None:
        return batches
    return [b for b in batches if b.get("status") == status]


def sort_batches(batches: List[dict], sort_by: Optional[str]) -> List[dict]:
    if sort_by == "newest":
        return sorted(batches, key=lambda b: b.get("createdAt", 0), reverse=True)
    if sort_by == "oldest":
        return sorted(batches, key=lambda b: b.get("createdAt", 0))
    if sort_by == "status":
        return sorted(batches, key=lambda b: b.get("status", 0))
    if sort_by == "assetId":
        return sorted(batches, key=lambda b: b.get("physicalAsset", {}).get("assetId", ""))
    return list(batches)
