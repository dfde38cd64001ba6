"""Example: drive the service layer directly, without Flask.

Uses the in-memory store so it runs without a database.
"""

from datetime import date

from src.school_attendance.school_attendance.attendance.memory_repository import InMemoryAttendanceStore
from src.school_attendance.school_attendance.attendance.sheet import AttendanceSheet
from src.school_attendance.school_attendance.container import build_memory_container
from src.school_attendance.school_attendance.roster.model import ClassGroup, Student


def main():
    store = InMemoryAttendanceStore(
        classes=[ClassGroup(class_id="5a", name="Grade 5 A", grade="5")],
        students=[
            Student(student_id="1", first_name="Ahmed", last_name="Ali", student_code="S-001", class_id="5a"),
            Student(student_id="2", first_name="Sara", last_name="Bennani", student_code="S-002", class_id="5a"),
        ],
        subject_hours={"English": 40},
    )
    service = build_memory_container(store).attendance_service

    sheet = AttendanceSheet(class_id="5a", subject="English", date=date(2025, 3, 10), start_time="08:00", end_time="09:30")
    sheet.mark("2", "absent")
    service.submit_sheet(sheet)

    batch = service.start_extraction_batch('[{"studentName": "ahmed ali", "status": "late", "minutesLate": 12}]')
    service.commit_extraction(batch, date(2025, 3, 11), subject="English")

    metrics = service.compute_metrics()
    print("attendance rate:", metrics.attendance_rate)
    print("lost minutes:", metrics.lost_instructional_time)
    for s in metrics.at_risk_list:
        print("at risk:", s.full_name, s.risk_score)


if __name__ == "__main__":
    main()
