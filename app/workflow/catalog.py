from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DocumentCategory(str, Enum):
    admission = "admission"
    academic = "academic"
    financial = "financial"
    personal = "personal"
    medical = "medical"
    legal = "legal"


CATEGORY_LABELS: Dict[DocumentCategory, str] = {
    DocumentCategory.admission: "Admission Documents",
    DocumentCategory.academic: "Academic Documents",
    DocumentCategory.financial: "Financial Documents",
    DocumentCategory.personal: "Personal Documents",
    DocumentCategory.medical: "Medical Documents",
    DocumentCategory.legal: "Legal Documents",
}


class CopiesRequirement(BaseModel):
    model_config = ConfigDict(frozen=True)

    colored: int = Field(..., ge=0, description="Number of colored originals to bring")
    photocopies: int = Field(..., ge=0, description="Number of photocopies to bring")


class RequiredDocumentSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable identifier used as the document type of a record")
    name: str = Field(..., description="Display name")
    description: str = Field(..., description="What the student has to provide")
    required: bool = Field(default=True)
    category: DocumentCategory
    copies: CopiesRequirement


def _spec(doc_id: str, name: str, description: str, category: DocumentCategory, colored: int, photocopies: int) -> RequiredDocumentSpec:
    return RequiredDocumentSpec(
        id=doc_id,
        name=name,
        description=description,
        category=category,
        copies=CopiesRequirement(colored=colored, photocopies=photocopies),
    )


REQUIRED_DOCUMENTS: tuple = (
    _spec("jamb-admission", "JAMB Admission Letter", "For institution use only", DocumentCategory.admission, 1, 4),
    _spec("oaustech-admission", "OAUSTECH School Admission Letter", "Official admission letter from OAUSTECH", DocumentCategory.admission, 1, 4),
    _spec("jamb-supeb-result", "JAMB Result/SUPEB Result(DE)", "JAMB UTME or SUPEB Direct Entry results", DocumentCategory.academic, 1, 4),
    _spec("olevel-result", "O'Level Result WAEC/NECO", "West African Examination Council or National Examination Council results", DocumentCategory.academic, 1, 4),
    _spec("clearance-form", "Clearance Form", "Duly completed by HOD and Dean", DocumentCategory.academic, 1, 0),
    _spec("application-form", "Candidate Application Form", "Completed application form", DocumentCategory.admission, 1, 4),
    _spec("acceptance-clearance", "Acceptance Clearance", "Acceptance of admission offer", DocumentCategory.admission, 1, 4),
    _spec("payment-receipts", "Payment Receipts", "PUTME, Access/Checkers, Acceptance Fee, Medical Fee, School Fee", DocumentCategory.financial, 1, 4),
    _spec("attestation-letter", "Attestation Letter", "Character attestation letter", DocumentCategory.personal, 1, 0),
    _spec("birth-certificate", "Certificate of Birth", "Official birth certificate", DocumentCategory.personal, 1, 0),
    _spec("origin-certificate", "Certificate of Origin", "Local government certificate of origin", DocumentCategory.personal, 1, 0),
    _spec("medical-form", "Medical Form", "Duly filled at the school health center", DocumentCategory.medical, 1, 4),
    _spec("medical-certificate", "Medical Certificate of Fitness", "Certificate confirming medical fitness", DocumentCategory.medical, 1, 0),
    _spec("cultism-declaration", "Declaration Against Cultism", "Signed declaration against cultism", DocumentCategory.legal, 1, 0),
    _spec("course-form", "Course Form", "Selected course registration form", DocumentCategory.academic, 1, 0),
)

TOTAL_REQUIRED_DOCUMENTS = len(REQUIRED_DOCUMENTS)

_BY_ID: Dict[str, RequiredDocumentSpec] = {doc.id: doc for doc in REQUIRED_DOCUMENTS}


def get_document_by_id(document_type: str) -> Optional[RequiredDocumentSpec]:
    return _BY_ID.get(document_type)


def is_known_document_type(document_type: str) -> bool:
    return document_type in _BY_ID


def get_documents_by_category(category, catalog=REQUIRED_DOCUMENTS) -> List[RequiredDocumentSpec]:
    category = DocumentCategory(category)
    return [doc for doc in catalog if doc.category == category]
