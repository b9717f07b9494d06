from fastapi import APIRouter, HTTPException, Depends, Query
from typing import Optional, Dict, Any
from datetime import datetime
import logging

from app.core.auth_dependencies import get_admin_session
from app.services.audit_service import audit_service
from app.workflow.session import SessionContext

router = APIRouter(prefix="/api/admin/audits", tags=["Audits"])

logger = logging.getLogger(__name__)


def _parse_day(value: str, field: str) -> datetime:
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {field} format, expected YYYY-MM-DD")


@router.get("", status_code=200)
async def list_audits(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=1000),
    action: Optional[str] = Query(default=None),
    actor: Optional[str] = Query(default=None),
    acted: Optional[str] = Query(default=None),
    status: Optional[str] = Query(default=None),
    start_date: Optional[str] = Query(default=None, description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(default=None, description="YYYY-MM-DD"),
    session: SessionContext = Depends(get_admin_session),
):
    filters: Dict[str, Any] = {"action": action, "actor": actor, "acted": acted, "status": status}
    if start_date:
        filters["start_date"] = _parse_day(start_date, "start_date")
    if end_date:
        # inclusive through the end of that day
        filters["end_date"] = _parse_day(end_date, "end_date").replace(hour=23, minute=59, second=59, microsecond=999999)

    return await audit_service.get_audits(skip=skip, limit=limit, filters=filters)
