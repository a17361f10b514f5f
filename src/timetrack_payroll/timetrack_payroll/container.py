from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .core.constants import DEFAULT_TRAILING_MONTHS
from .database.connection import DatabaseConnection, DBConfig
from .payroll.calculator.hourly_calculator import HourlyRateCalculator
from .payroll.service import StatisticsService
from .rates.mysql_rate_repository import MySQLRateRepository
from .rates.repository import RateRepository
from .rates.service import RateService
from .timetracks.mysql_time_track_repository import MySQLTimeTrackRepository
from .timetracks.payment import PaymentService
from .timetracks.repository import TimeTrackRepository
from .timetracks.service import TimeTrackService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    rates_repo: RateRepository
    tracks_repo: TimeTrackRepository

    auth_service: AuthService
    user_service: UserService
    rate_service: RateService
    time_track_service: TimeTrackService
    payment_service: PaymentService
    statistics_service: StatisticsService


def assemble(
    *,
    users_repo: UserRepository,
    rates_repo: RateRepository,
    tracks_repo: TimeTrackRepository,
    conn: Optional[DatabaseConnection] = None,
    trailing_months: int = DEFAULT_TRAILING_MONTHS,
) -> Container:
    """Wire services on top of any repository implementations."""
    calculator = HourlyRateCalculator()

    return Container(
        conn=conn,
        users_repo=users_repo,
        rates_repo=rates_repo,
        tracks_repo=tracks_repo,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo, rates_repo, tracks_repo),
        rate_service=RateService(rates_repo, users_repo),
        time_track_service=TimeTrackService(tracks_repo, rates_repo, calculator=calculator),
        payment_service=PaymentService(tracks_repo),
        statistics_service=StatisticsService(
            users_repo,
            rates_repo,
            tracks_repo,
            calculator=calculator,
            trailing_months=trailing_months,
        ),
    )


def build_container(*, db_config: dict, trailing_months: int = DEFAULT_TRAILING_MONTHS) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return assemble(
        users_repo=MySQLUserRepository(conn),
        rates_repo=MySQLRateRepository(conn),
        tracks_repo=MySQLTimeTrackRepository(conn),
        conn=conn,
        trailing_months=trailing_months,
    )
