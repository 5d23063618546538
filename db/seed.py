# Insert a sample week of scheduling data for local development
from datetime import date, datetime, time, timedelta

from sqlmodel import Session, SQLModel, select

from db.session import engine
from models.availability import Availability
from models.shift import DraftShift
from models.time_off import TimeOffNotice, TimeOffStatus
from utils.timezone_helpers import local_end_of_day, local_start_of_day, to_utc, week_start_of

SAMPLE_EMPLOYEES = ["emp-alice", "emp-bob", "emp-carla"]
SAMPLE_LOCATION = "SPH"


def seed_week(week_start: date):
    SQLModel.metadata.create_all(engine)
    week_end = week_start + timedelta(days=6)

    with Session(engine) as session:
        existing = session.exec(
            select(DraftShift).where(DraftShift.start_time >= local_start_of_day(week_start))
        ).first()
        if existing:
            print(f"Week of {week_start} already has draft shifts")
            return

        # Weekday availability, 8am to 5pm, for everyone
        for employee_id in SAMPLE_EMPLOYEES:
            for day_of_week in range(5):
                session.add(
                    Availability(
                        employee_id=employee_id,
                        day_of_week=day_of_week,
                        start_time=time(8, 0),
                        end_time=time(17, 0),
                        effective_start_date=week_start,
                    )
                )

        # 9-5 drafts Monday to Friday, plus one open Saturday shift
        for offset in range(5):
            day = week_start + timedelta(days=offset)
            for employee_id in SAMPLE_EMPLOYEES:
                session.add(
                    DraftShift(
                        employee_id=employee_id,
                        start_time=to_utc(datetime.combine(day, time(9, 0))),
                        end_time=to_utc(datetime.combine(day, time(17, 0))),
                        location=SAMPLE_LOCATION,
                    )
                )
        saturday = week_start + timedelta(days=5)
        session.add(
            DraftShift(
                start_time=to_utc(datetime.combine(saturday, time(10, 0))),
                end_time=to_utc(datetime.combine(saturday, time(14, 0))),
                location=SAMPLE_LOCATION,
            )
        )

        # Approved Wednesday off for Bob, so the week shows one conflict
        wednesday = week_start + timedelta(days=2)
        session.add(
            TimeOffNotice(
                employee_id="emp-bob",
                start_time=local_start_of_day(wednesday),
                end_time=local_end_of_day(wednesday),
                status=TimeOffStatus.APPROVED,
                reason="Doctor appointment",
            )
        )

        session.commit()
        print(f"Seeded week {week_start}..{week_end}")


if __name__ == "__main__":
    seed_week(week_start_of(date.today()))
