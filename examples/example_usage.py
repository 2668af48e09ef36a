"""Example: using the service layer directly (no Flask).

Controllers are a thin layer; the rules live in the services.
"""

from datetime import date

from src.studyroom.studyroom.container import build_container
from src.studyroom.studyroom.main import load_settings, prepare_database
from src.studyroom.studyroom.payments.model import PaymentDraft


def main():
    container = build_container(load_settings())
    prepare_database(container)

    plan = container.plan_service.list_plans()[0]
    enrolled = container.membership_service.enroll(
        {"name": "Asha Rao", "phone": "9800000000", "seat_no": "12"}, plan.plan_id, payment=PaymentDraft()
    )
    member = enrolled.member
    print(member.to_dict())

    container.attendance_service.check_in(member.member_id)
    print([row.to_dict() for row in container.attendance_service.list_by_date(date.today())])
    print(container.scheduler_service.get_status())


if __name__ == "__main__":
    main()
