"""
Subject resolution for device check-ins (QR cards and biometric readers),
plus rendering of the QR attendance card printed for each roster entry.

QR payload written on cards:
  {"kind": "member", "id": 12, "name": "Asha", "qrCode": "member-12-1718000000000"}
Older member cards only carry {"memberId": 12, ...}; {"staffId": 3} is the
staff equivalent. Both are accepted.
"""

import io
import json
import time

import qrcode
from sqlalchemy.orm import Session

from gym_attendance.exceptions import InvalidQrCode, SubjectNotFound
from gym_attendance.models.roster_entry import RosterEntry
from gym_attendance.schemas.attendance import SubjectKey, SubjectKind
from gym_attendance.utils.logger import get_logger

logger = get_logger(__name__)

_LEGACY_ID_FIELDS = {"memberId": SubjectKind.MEMBER, "staffId": SubjectKind.STAFF}


def parse_qr_payload(raw: str) -> SubjectKey:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        raise InvalidQrCode("QR code does not contain attendance card data") from None
    if not isinstance(data, dict):
        raise InvalidQrCode()

    try:
        if "kind" in data:
            return SubjectKey(kind=SubjectKind(data["kind"]), id=int(data["id"]))
        for field, kind in _LEGACY_ID_FIELDS.items():
            if field in data:
                return SubjectKey(kind=kind, id=int(data[field]))
    except (KeyError, TypeError, ValueError):
        raise InvalidQrCode() from None

    logger.warning(f"[Scan] QR payload without subject id: keys={sorted(data)}")
    raise InvalidQrCode()


def resolve_biometric(db: Session, biometric_id: str) -> SubjectKey:
    entry = (
        db.query(RosterEntry)
        .filter(RosterEntry.biometric_id == biometric_id, RosterEntry.is_active == 1)
        .first()
    )
    if not entry:
        logger.warning(f"[Scan] Unknown biometric id {biometric_id}")
        raise SubjectNotFound(f"No active roster entry for biometric id {biometric_id}")
    return SubjectKey(kind=SubjectKind(entry.kind), id=entry.id)


def build_qr_payload(entry: RosterEntry) -> str:
    # Millisecond suffix keeps every printed card unique
    return json.dumps({
        "kind": entry.kind,
        "id": entry.id,
        "name": entry.name,
        "qrCode": f"{entry.kind}-{entry.id}-{int(time.time() * 1000)}",
    })


def render_qr_png(payload: str) -> bytes:
    image = qrcode.make(payload)
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()
