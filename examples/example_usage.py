"""Drive the marking workflow through the service layer, without Flask.

Needs a database prepared with ``scripts/init_db.py`` and ``scripts/seed_db.py``.
"""

import importlib

from config import get_settings_module

from src.lms_attendance.lms_attendance.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)
    attendance = container.attendance_service

    session = attendance.open_session(1)
    attendance.bulk_mark(session, None, "present")
    results = attendance.save(session)
    failed = [r for r in results if not r.ok]
    if failed:
        results = attendance.retry(session, failed)

    print(attendance.session_stats(session).to_dict())
    print(attendance.search_records(limit=5))


if __name__ == "__main__":
    main()
