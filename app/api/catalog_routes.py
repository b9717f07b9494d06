from fastapi import APIRouter

from app.schemas.document_schema import CatalogCategory, CatalogResponse
from app.workflow.catalog import CATEGORY_LABELS, REQUIRED_DOCUMENTS, TOTAL_REQUIRED_DOCUMENTS, DocumentCategory, get_documents_by_category

router = APIRouter(prefix="/api/catalog", tags=["Catalog"])


# Lists every required document, flat and grouped by category
@router.get("", response_model=CatalogResponse)
async def get_catalog() -> CatalogResponse:
    categories = [
        CatalogCategory(id=category, name=CATEGORY_LABELS[category], documents=get_documents_by_category(category))
        for category in DocumentCategory
    ]
    return CatalogResponse(
        total_required=TOTAL_REQUIRED_DOCUMENTS,
        documents=list(REQUIRED_DOCUMENTS),
        categories=categories,
    )
