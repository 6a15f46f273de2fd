"""Admin review of grade changes to exam components."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from educonnect.auth import AuthContext, require_admin
from educonnect.core import di
from educonnect.grading import approve_audit, AuditNotPendingError, reject_audit
from educonnect.model import AuditID, AuditStatus, GradeAuditDetail, GradeAuditLog
from educonnect.storage import audit as audit_storage

from ..view.envelope import Envelope
from ..view.grade import AuditDecisionRequest

router = APIRouter(prefix="/api/grade-audits", tags=["grade-audits"])


@router.get("", operation_id="list_grade_audits")
@di.inject
def list_audits(
    status_: AuditStatus | None = Query(None, alias="status"),
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[list[GradeAuditDetail]]:
    """The approval queue, with the names needed to judge each change."""
    with session.begin():
        return Envelope(data=list(audit_storage.find_detail(status=status_, session=session)))


@router.post("/{audit_id}/approve", operation_id="approve_grade_audit")
@di.inject
def approve(
    audit_id: AuditID,
    request: AuditDecisionRequest | None = None,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[GradeAuditLog]:
    try:
        with session.begin():
            audit = approve_audit(audit_id, auth.user, request.reason if request else None, session=session)
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Grade audit not found") from None
    except AuditNotPendingError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from None
    return Envelope(data=audit)


@router.post("/{audit_id}/reject", operation_id="reject_grade_audit")
@di.inject
def reject(
    audit_id: AuditID,
    request: AuditDecisionRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[GradeAuditLog]:
    try:
        with session.begin():
            audit = reject_audit(audit_id, auth.user, request.reason or "", session=session)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from None
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Grade audit not found") from None
    except AuditNotPendingError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from None
    return Envelope(data=audit)
