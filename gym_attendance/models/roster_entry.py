"""
Roster table — every member and staff person who can be checked in.
The store resolves a subject identity (kind, id) against this table and
snapshots name and category onto each attendance record.
"""

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String
from gym_attendance.database import Base


class RosterEntry(Base):
    __tablename__ = "roster"
    __table_args__ = (
        CheckConstraint("kind IN ('member', 'staff')", name="ck_roster_kind"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    kind = Column(String(10), nullable=False, index=True)   # member | staff
    name = Column(String(120), nullable=False)
    category = Column(String(60))               # membership type (member) or role (staff)
    email = Column(String(120))
    phone = Column(String(30))
    biometric_id = Column(String(64), unique=True)
    is_active = Column(Integer, default=1, nullable=False)
    registered_at = Column(DateTime)

    def __repr__(self):
        return f"<RosterEntry {self.id} {self.kind} name={self.name}>"
