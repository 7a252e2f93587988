# Gym Attendance — Database Models
# Import all models here for SQLAlchemy discovery

from gym_attendance.models.roster_entry import RosterEntry              # noqa
from gym_attendance.models.attendance_record import AttendanceRecord    # noqa
