from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.memory_repository import InMemoryAttendanceStore
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.enums import DefaultFillPolicy
from .database.connection import DBConfig, DatabaseConnection
from .matching.extraction import ExtractionClient
from .matching.matcher import IdentityMatcher
from .roster.mysql_roster_repository import MySQLRosterRepository
from .roster.repository import RosterRepository
from .statistics.engine import StatisticsEngine


@dataclass(frozen=True)
class Container:
    attendance_repo: AttendanceRepository
    roster_repo: RosterRepository

    engine: StatisticsEngine
    matcher: IdentityMatcher
    attendance_service: AttendanceService


def _wire(
    attendance_repo: AttendanceRepository,
    roster_repo: RosterRepository,
    *,
    fill_policy: DefaultFillPolicy,
    extraction_client: Optional[ExtractionClient],
) -> Container:
    engine = StatisticsEngine()
    matcher = IdentityMatcher()
    attendance_service = AttendanceService(
        attendance_repo,
        roster_repo,
        engine=engine,
        matcher=matcher,
        fill_policy=fill_policy,
        extraction_client=extraction_client,
    )
    return Container(
        attendance_repo=attendance_repo,
        roster_repo=roster_repo,
        engine=engine,
        matcher=matcher,
        attendance_service=attendance_service,
    )


def build_memory_container(
    store: InMemoryAttendanceStore,
    *,
    fill_policy: DefaultFillPolicy = DefaultFillPolicy.PRESENT,
    extraction_client: Optional[ExtractionClient] = None,
) -> Container:
    return _wire(store, store, fill_policy=fill_policy, extraction_client=extraction_client)


def build_container(
    *,
    db_config: dict,
    storage_backend: str = "mysql",
    fill_policy: DefaultFillPolicy | str = DefaultFillPolicy.PRESENT,
    subject_hours: Optional[dict] = None,
    extraction_client: Optional[ExtractionClient] = None,
) -> Container:
    policy = DefaultFillPolicy(fill_policy)

    if storage_backend == "memory":
        return build_memory_container(
            InMemoryAttendanceStore(subject_hours=subject_hours),
            fill_policy=policy,
            extraction_client=extraction_client,
        )

    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return _wire(
        MySQLAttendanceRepository(conn),
        MySQLRosterRepository(conn, fallback_subject_hours=subject_hours),
        fill_policy=policy,
        extraction_client=extraction_client,
    )
