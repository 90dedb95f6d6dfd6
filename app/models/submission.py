# backend/app/models/submission.py

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


def _blank_to_none(value):
    """Form selects post "" for "nothing chosen"."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


class Material(BaseModel):
    compositionMaterial: str
    percentage: float = 0
    sustainable: bool = False
    sustainabilityClaim: Optional[
        Literal["Recycled", "Regenerative", "Organic", "Transitional", "Better", "RegenerativeOrganicCertified"]
    ] = None
    feedstockRecycledMaterials: Optional[Literal["PostIndustrial", "PostConsumer"]] = None

    @field_validator("sustainabilityClaim", "feedstockRecycledMaterials", mode="before")
    @classmethod
    def blank_choice_is_none(cls, value):
        return _blank_to_none(value)


class NamedFile(BaseModel):
    name: str
    file: Optional[str] = None


class ValidationSource(BaseModel):
    kgs: float = 0
    feedstockType: Optional[str] = None
    feedstockSourceType: Optional[str] = None
    sourceName: Optional[str] = None
    address: Optional[str] = None
    sourceCertification: Optional[str] = None
    sourceInvoiceNo: Optional[str] = None
    sourceInvoiceDate: Optional[str] = None
    invoiceFile: Optional[str] = None
    packingListFile: Optional[str] = None
    proofOfDeliveryFile: Optional[str] = None
    labTestingFile: Optional[str] = None
    certificates: List[NamedFile] = []
    otherDocuments: List[NamedFile] = []


class SelfValidation(BaseModel):
    sources: List[ValidationSource] = []
    totalSourceInput: float = 0


class Certificate(BaseModel):
    name: str
    description: Optional[str] = None
    status: Literal["VERIFIED", "PENDING", "EXPIRED"] = "PENDING"
    validThruDate: Optional[str] = None


class Certificates(BaseModel):
    environmental: List[Certificate] = []
    social: List[Certificate] = []
    chemical: List[Certificate] = []


def new_submission_id() -> str:
    return f"SUB-{uuid.uuid4().hex[:12].upper()}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Submission(BaseModel):
    """
    One material-tracking form. Mirrors the Aware submission form sections:
    production info, colour, lot and weight, sustainability claims, material
    composition, asset id, tracer, validation method and certificates.
    """
    id: Optional[str] = None
    submissionDate: str = Field(default_factory=_now_iso)

    # Production
    date: Optional[str] = None
    productionFacility: Optional[str] = None
    valueChainProcessMain: Optional[str] = None
    valueChainProcessSub: Optional[str] = None
    awareTokenType: Optional[str] = None
    materialSpecification: Optional[str] = None

    # Colour
    mainColorSelected: Optional[str] = None
    mainColorText: Optional[str] = None

    # Lot and weight
    productionLotBatchNo: Optional[str] = None
    totalWeightKgs: Optional[Union[float, str]] = None

    # Sustainability
    sustainableProcessClaims: bool = False
    wetProcessing: bool = False

    materials: List[Material] = []
    awareAssetId: Optional[str] = None

    # Tracer
    tracerAdded: bool = False
    typeOfTracer: Optional[Literal["Aware", "Custom"]] = None
    awareTracerPositiveScanDate: Optional[str] = None
    awareTracerTestReport: Optional[str] = None
    awareTracerConfirmation: bool = False
    customTracerName: Optional[str] = None
    customTracerDatePositiveReport: Optional[str] = None
    customTracerTestReport: Optional[str] = None
    customTracerConfirmation: bool = False

    # Validation
    validationMethod: Optional[Literal["SelfValidation", "GuanXu", "STCP"]] = None
    selfValidation: Optional[SelfValidation] = None
    guanXuDocumentation: Optional[str] = None
    guanXuFullName: Optional[str] = None
    guanXuDeclaration: bool = False
    stcpDocumentation: Optional[str] = None
    stcpFullName: Optional[str] = None
    stcpDeclaration: bool = False

    certificates: Certificates = Certificates()

    @field_validator("typeOfTracer", "validationMethod", mode="before")
    @classmethod
    def blank_choice_is_none(cls, value):
        return _blank_to_none(value)

    def validate_fields(self) -> List[str]:
        """Return the list of missing required fields; empty when the form is complete."""
        errors = []
        if not self.date:
            errors.append("Date is required")
        if not self.productionFacility:
            errors.append("Production Facility is required")
        if not self.valueChainProcessMain:
            errors.append("Value Chain Process (Main) is required")
        if not self.valueChainProcessSub:
            errors.append("Value Chain Process (Sub) is required")
        if not self.materialSpecification:
            errors.append("Material Specification is required")
        if not self.mainColorSelected:
            errors.append("Main Color is required")
        if not self.productionLotBatchNo:
            errors.append("Production Lot/Batch No. is required")
        if not self.totalWeightKgs:
            errors.append("Total Weight is required")
        if not self.materials:
            errors.append("At least one material composition is required")
        if self.tracerAdded and not self.typeOfTracer:
            errors.append("Type of Tracer is required when tracer is added")
        if not self.validationMethod:
            errors.append("Validation method is required")
        return errors

    def to_spreadsheet_row(self) -> Dict[str, Any]:
        return {
            "Submission ID": self.id,
            "Submission Date": self.submissionDate,
            "Date": self.date,
            "Production Facility": self.productionFacility,
            "Value Chain Process (Main)": self.valueChainProcessMain,
            "Value Chain Process (Sub)": self.valueChainProcessSub,
            "Aware Token Type": self.awareTokenType,
            "Material Specification": self.materialSpecification,
            "Main Color (Selected)": self.mainColorSelected,
            "Main Color (Text)": self.mainColorText,
            "Production Lot/Batch No.": self.productionLotBatchNo,
            "Total Weight (Kgs)": self.totalWeightKgs,
            "Sustainable Process Claims": _yes_no(self.sustainableProcessClaims),
            "Wet Processing": _yes_no(self.wetProcessing),
            "Materials": json.dumps([m.model_dump() for m in self.materials]),
            "Aware Asset ID": self.awareAssetId,
            "Tracer Added": _yes_no(self.tracerAdded),
            "Type of Tracer": self.typeOfTracer,
            "Aware Tracer Scan Date": self.awareTracerPositiveScanDate,
            "Aware Tracer Test Report": self.awareTracerTestReport,
            "Custom Tracer Name": self.customTracerName,
            "Custom Tracer Date": self.customTracerDatePositiveReport,
            "Custom Tracer Report": self.customTracerTestReport,
            "Validation Method": self.validationMethod,
            "Self Validation Data": json.dumps(self.selfValidation.model_dump() if self.selfValidation else None),
            "Guan Xu Full Name": self.guanXuFullName,
            "STCP Full Name": self.stcpFullName,
            "Certificates": json.dumps(self.certificates.model_dump()),
        }


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


SUBMISSION_HEADERS = list(Submission().to_spreadsheet_row().keys())
