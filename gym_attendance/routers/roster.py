"""Roster of members and staff who can be checked in, plus their QR attendance cards."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session
from gym_attendance.database import get_db
from gym_attendance.models.roster_entry import RosterEntry
from gym_attendance.schemas.attendance import SubjectKind
from gym_attendance.schemas.roster import RosterEntryCreate, RosterEntryOut
from gym_attendance.services.scan_service import build_qr_payload, render_qr_png
from gym_attendance.utils.timeutils import to_db, utcnow
from typing import Optional

router = APIRouter()


def _get_entry(db: Session, entry_id: int) -> RosterEntry:
    entry = db.query(RosterEntry).filter(RosterEntry.id == entry_id).first()
    if not entry:
        raise HTTPException(status_code=404, detail="Roster entry not found")
    return entry


@router.get("/roster", response_model=list[RosterEntryOut], summary="List members and staff")
def list_roster(kind: Optional[SubjectKind] = None, include_inactive: bool = False,
                db: Session = Depends(get_db)):
    q = db.query(RosterEntry)
    if kind:
        q = q.filter(RosterEntry.kind == kind.value)
    if not include_inactive:
        q = q.filter(RosterEntry.is_active == 1)
    return q.order_by(RosterEntry.name).all()


@router.post("/roster", response_model=RosterEntryOut, status_code=201, summary="Register a member or staff")
def register(body: RosterEntryCreate, db: Session = Depends(get_db)):
    if body.biometric_id:
        taken = db.query(RosterEntry).filter(RosterEntry.biometric_id == body.biometric_id).first()
        if taken:
            raise HTTPException(status_code=400, detail=f"Biometric id {body.biometric_id} already registered")
    entry = RosterEntry(
        kind=body.kind.value,
        name=body.name,
        category=body.category,
        email=body.email,
        phone=body.phone,
        biometric_id=body.biometric_id,
        is_active=1,
        registered_at=to_db(utcnow()),
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


@router.get("/roster/{entry_id}", response_model=RosterEntryOut, summary="Get one roster entry")
def get_entry(entry_id: int, db: Session = Depends(get_db)):
    return _get_entry(db, entry_id)


@router.delete("/roster/{entry_id}", summary="Deactivate a roster entry")
def deactivate(entry_id: int, db: Session = Depends(get_db)):
    """Attendance history keeps referring to the entry, so it is only deactivated."""
    entry = _get_entry(db, entry_id)
    entry.is_active = 0
    db.commit()
    return {"status": "deactivated", "id": entry_id}


@router.get("/roster/{entry_id}/qr-code", summary="QR attendance card (PNG)",
            response_class=Response, responses={200: {"content": {"image/png": {}}}})
def qr_card(entry_id: int, db: Session = Depends(get_db)):
    entry = _get_entry(db, entry_id)
    if not entry.is_active:
        raise HTTPException(status_code=404, detail="Roster entry is inactive")
    return Response(content=render_qr_png(build_qr_payload(entry)), media_type="image/png")
