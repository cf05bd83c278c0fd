"""Unit tests for the check-in service."""
import random

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from app.core.exceptions import InvalidConfigError, PersistenceError
from app.db.models import CheckIn, PointTransaction, QrCode, UserBadge
from app.db.seed import seed_badges
from app.engine import CheckInRejection, RejectionKind, process_check_in
from app.services import checkin as checkin_service
from app.services.checkin import (
    effective_streak,
    get_check_in_stats,
    get_todays_check_in,
    get_todays_check_ins,
    get_user_check_ins,
    perform_check_in,
    pick_quote,
    write_check_in,
)
from app.services.config import get_active_config
from app.services.users import get_leaderboard, get_user_state
from app.core.cache import global_cache
from app.core.constants import MOTIVATIONAL_QUOTES
from tests.conftest import denver


MONDAY_7AM = denver(2025, 6, 2, 7, 0)


@pytest.mark.unit
class TestPerformCheckIn:

    def test_first_check_in_persists_everything(self, db_session, employee):
        outcome = perform_check_in(db_session, employee, now=MONDAY_7AM)

        assert not isinstance(outcome, CheckInRejection)
        result = outcome["result"]
        assert result.classification == "early"
        assert result.total_points == 2
        assert outcome["points_balance"] == 2

        record = db_session.query(CheckIn).filter(CheckIn.id == outcome["check_in_id"]).one()
        assert record.check_in_date.isoformat() == "2025-06-02"
        assert record.streak_day == 1

        db_session.refresh(employee)
        assert employee.points_balance == 2
        assert employee.total_points_earned == 2
        assert employee.current_streak == 1
        assert employee.longest_streak == 1
        assert employee.total_check_ins == 1
        assert employee.last_check_in_time is not None

    def test_writes_earned_and_bonus_ledger_rows(self, db_session, make_user, company):
        user = make_user(current_streak=6, longest_streak=6, last_check_in_time=denver(2025, 6, 1, 7, 30))

        outcome = perform_check_in(db_session, user, now=denver(2025, 6, 2, 7, 50))

        rows = db_session.query(PointTransaction).filter(PointTransaction.user_id == user.id).all()
        by_type = {row.transaction_type: row for row in rows}
        assert set(by_type) == {"earned", "bonus"}
        assert by_type["earned"].amount == 1
        assert by_type["bonus"].amount == 5
        assert by_type["bonus"].reference_id == outcome["check_in_id"]
        assert by_type["earned"].reference_type == "checkin"

    def test_late_check_in_writes_no_zero_point_ledger_row(self, db_session, employee):
        perform_check_in(db_session, employee, now=denver(2025, 6, 2, 8, 30))

        assert db_session.query(PointTransaction).count() == 0
        db_session.refresh(employee)
        assert employee.total_check_ins == 1
        assert employee.points_balance == 0

    def test_ledger_sums_to_balance(self, db_session, make_user, company):
        user = make_user(current_streak=9, longest_streak=9, last_check_in_time=denver(2025, 6, 1, 7, 30))
        perform_check_in(db_session, user, now=MONDAY_7AM)

        db_session.refresh(user)
        total = sum(row.amount for row in db_session.query(PointTransaction).filter_by(user_id=user.id))
        assert total == user.points_balance == 12

    def test_second_attempt_same_day_is_rejected(self, db_session, employee):
        perform_check_in(db_session, employee, now=MONDAY_7AM)
        outcome = perform_check_in(db_session, employee, now=denver(2025, 6, 2, 8, 15))

        assert isinstance(outcome, CheckInRejection)
        assert outcome.kind == RejectionKind.ALREADY_CHECKED_IN
        db_session.refresh(employee)
        assert employee.points_balance == 2
        assert db_session.query(CheckIn).count() == 1

    def test_outside_window_writes_nothing(self, db_session, employee):
        outcome = perform_check_in(db_session, employee, now=denver(2025, 6, 2, 5, 30))

        assert outcome.kind == RejectionKind.OUTSIDE_WINDOW
        assert outcome.local_time == "05:30"
        assert db_session.query(CheckIn).count() == 0

    def test_lost_race_becomes_already_checked_in(self, db_session, employee, monkeypatch):
        """The unique constraint catches a duplicate the read missed."""
        perform_check_in(db_session, employee, now=MONDAY_7AM)
        monkeypatch.setattr(checkin_service, "get_check_in_for_day", lambda db, user_id, day: None)

        outcome = perform_check_in(db_session, employee, now=denver(2025, 6, 2, 7, 30))

        assert isinstance(outcome, CheckInRejection)
        assert outcome.kind == RejectionKind.ALREADY_CHECKED_IN
        db_session.refresh(employee)
        assert employee.points_balance == 2
        assert employee.total_check_ins == 1
        assert db_session.query(CheckIn).count() == 1

    def test_other_constraint_failure_is_not_a_duplicate(self, db_session, employee, monkeypatch):
        def clashing_badge_insert(db, user, now=None):
            raise IntegrityError(
                "INSERT INTO user_badges", {}, Exception("UNIQUE constraint failed: user_badges.user_id")
            )

        monkeypatch.setattr(checkin_service, "award_badges", clashing_badge_insert)

        with pytest.raises(PersistenceError):
            perform_check_in(db_session, employee, now=MONDAY_7AM)

        assert db_session.query(CheckIn).count() == 0
        db_session.refresh(employee)
        assert employee.points_balance == 0

    def test_storage_failure_raises_persistence_error(self, db_session, employee, monkeypatch):
        def failing_commit():
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db_session, "commit", failing_commit)

        with pytest.raises(PersistenceError):
            perform_check_in(db_session, employee, now=MONDAY_7AM)

        monkeypatch.undo()
        db_session.refresh(employee)
        assert employee.points_balance == 0
        assert db_session.query(CheckIn).count() == 0

    def test_pending_user_is_refused(self, db_session, company, make_user):
        user = make_user(status="pending")
        with pytest.raises(PermissionError):
            perform_check_in(db_session, user, now=MONDAY_7AM)

    def test_invalid_config_raises(self, db_session, company, employee):
        company.settings = {**company.settings, "window_start": "10:00"}
        db_session.commit()

        with pytest.raises(InvalidConfigError):
            perform_check_in(db_session, employee, now=MONDAY_7AM)
        assert db_session.query(CheckIn).count() == 0

    def test_invalidates_leaderboard(self, db_session, employee):
        assert get_leaderboard(db_session, employee.company_id)[0]["points_balance"] == 0

        perform_check_in(db_session, employee, now=MONDAY_7AM)

        assert get_leaderboard(db_session, employee.company_id)[0]["points_balance"] == 2

    def test_quote_matches_classification(self, db_session, employee):
        outcome = perform_check_in(db_session, employee, now=MONDAY_7AM, rng=random.Random(1))
        assert outcome["quote"] in MOTIVATIONAL_QUOTES["early"]


@pytest.mark.unit
class TestQrCodeRequirement:

    def test_valid_code_is_accepted_and_counted(self, db_session, qr_code, make_user):
        user = make_user()
        outcome = perform_check_in(db_session, user, now=MONDAY_7AM, qr_code=qr_code.code)

        assert not isinstance(outcome, CheckInRejection)
        db_session.refresh(qr_code)
        assert qr_code.usage_count == 1
        record = db_session.query(CheckIn).one()
        assert record.qr_code == qr_code.code

    def test_usage_count_includes_concurrent_scans(self, db_session, qr_code, make_user):
        user = make_user()
        assert qr_code.usage_count == 0
        # Other workers count scans after this session loaded the code; its copy is now stale
        db_session.query(QrCode).filter(QrCode.id == qr_code.id).update(
            {QrCode.usage_count: 5}, synchronize_session=False
        )
        assert qr_code.usage_count == 0

        perform_check_in(db_session, user, now=MONDAY_7AM, qr_code=qr_code.code)

        assert db_session.query(QrCode.usage_count).filter(QrCode.id == qr_code.id).scalar() == 6

    def test_scanned_url_is_accepted(self, db_session, qr_code, make_user):
        user = make_user()
        url = f"https://checkin.example.com/checkin/{qr_code.code.lower()}"
        outcome = perform_check_in(db_session, user, now=MONDAY_7AM, qr_code=url)
        assert not isinstance(outcome, CheckInRejection)

    @pytest.mark.parametrize("code", [None, "", "SK2025-NOTACODE", "bad code!"])
    def test_missing_or_unknown_code_is_rejected(self, db_session, qr_code, make_user, code):
        user = make_user()
        outcome = perform_check_in(db_session, user, now=MONDAY_7AM, qr_code=code)

        assert isinstance(outcome, CheckInRejection)
        assert outcome.kind == RejectionKind.INVALID_QR_CODE
        assert db_session.query(CheckIn).count() == 0

    def test_window_is_checked_before_qr_code(self, db_session, qr_code, make_user):
        user = make_user()
        outcome = perform_check_in(db_session, user, now=denver(2025, 6, 2, 10, 0), qr_code=None)
        assert outcome.kind == RejectionKind.OUTSIDE_WINDOW


@pytest.mark.unit
class TestBadgesOnCheckIn:

    def test_first_check_in_earns_welcome_badge_once(self, db_session, employee):
        seed_badges(db_session)

        first = perform_check_in(db_session, employee, now=MONDAY_7AM)
        assert [b["code"] for b in first["new_badges"]] == ["welcome_aboard"]

        second = perform_check_in(db_session, employee, now=denver(2025, 6, 3, 7, 0))
        assert second["new_badges"] == []
        assert db_session.query(UserBadge).filter_by(user_id=employee.id).count() == 1

    def test_streak_badge_on_seventh_day(self, db_session, make_user, company):
        seed_badges(db_session)
        user = make_user(current_streak=6, longest_streak=6, total_check_ins=6,
                         last_check_in_time=denver(2025, 6, 1, 7, 0))

        outcome = perform_check_in(db_session, user, now=MONDAY_7AM)

        assert "streak_master" in {b["code"] for b in outcome["new_badges"]}


@pytest.mark.unit
class TestCheckInQueries:

    def test_todays_check_in(self, db_session, employee):
        config = get_active_config(db_session, employee.company_id)
        assert get_todays_check_in(db_session, employee.id, config, MONDAY_7AM) is None

        perform_check_in(db_session, employee, now=MONDAY_7AM)

        assert get_todays_check_in(db_session, employee.id, config, denver(2025, 6, 2, 20, 0)) is not None
        assert get_todays_check_in(db_session, employee.id, config, denver(2025, 6, 3, 0, 30)) is None

    def test_history_newest_first(self, db_session, employee):
        perform_check_in(db_session, employee, now=MONDAY_7AM)
        perform_check_in(db_session, employee, now=denver(2025, 6, 3, 8, 0))

        history = get_user_check_ins(db_session, employee.id)
        assert [c.streak_day for c in history] == [2, 1]
        assert len(get_user_check_ins(db_session, employee.id, limit=1)) == 1

    def test_admin_todays_list(self, db_session, company, make_user):
        alice = make_user(name="Alice")
        bob = make_user(name="Bob")
        perform_check_in(db_session, alice, now=MONDAY_7AM)
        perform_check_in(db_session, bob, now=denver(2025, 6, 2, 8, 30))

        config = get_active_config(db_session, company.id)
        rows = get_todays_check_ins(db_session, company.id, config, denver(2025, 6, 2, 9, 30))

        assert [r["user_name"] for r in rows] == ["Alice", "Bob"]
        assert rows[0]["check_in_time"].startswith("2025-06-02T07:00")
        assert rows[1]["classification"] == "late"


@pytest.mark.unit
class TestCheckInStats:

    def test_stats(self, db_session, employee):
        perform_check_in(db_session, employee, now=MONDAY_7AM)
        perform_check_in(db_session, employee, now=denver(2025, 6, 3, 8, 0))
        db_session.refresh(employee)

        stats = get_check_in_stats(db_session, employee, now=denver(2025, 6, 3, 12, 0))

        assert stats["total_check_ins"] == 2
        assert stats["current_streak"] == 2
        assert stats["longest_streak"] == 2
        assert stats["points_balance"] == 3
        assert stats["average_check_in_time"] == "07:30"
        assert stats["classification_counts"] == {"early": 1, "ontime": 1, "late": 0}

    def test_no_check_ins(self, db_session, employee):
        stats = get_check_in_stats(db_session, employee, now=MONDAY_7AM)
        assert stats["average_check_in_time"] is None
        assert stats["current_streak"] == 0

    def test_broken_streak_reads_as_zero(self, db_session, company, make_user):
        user = make_user(current_streak=5, longest_streak=8, last_check_in_time=denver(2025, 5, 29, 7, 0))
        config = get_active_config(db_session, company.id)

        assert effective_streak(user, config, MONDAY_7AM) == 0
        assert effective_streak(user, config, denver(2025, 5, 30, 12, 0)) == 5

    def test_weekday_policy_keeps_streak_over_weekend(self, db_session, company, make_user):
        company.settings = {**company.settings, "streak_policy": "weekday"}
        db_session.commit()
        global_cache.clear()
        user = make_user(current_streak=5, longest_streak=5, last_check_in_time=denver(2025, 5, 30, 7, 0))
        config = get_active_config(db_session, company.id)

        assert effective_streak(user, config, denver(2025, 6, 1, 12, 0)) == 5
        assert effective_streak(user, config, MONDAY_7AM) == 5


@pytest.mark.unit
def test_pick_quote_is_deterministic_with_seeded_rng():
    assert pick_quote("late", random.Random(3)) == pick_quote("late", random.Random(3))
    assert pick_quote("ontime") in MOTIVATIONAL_QUOTES["ontime"]


def accepted_result(db_session, user, now):
    config = get_active_config(db_session, user.company_id)
    return process_check_in(user.id, now, get_user_state(user), config, lambda user_id, day: None)


@pytest.mark.unit
class TestWriteCheckIn:

    def test_stages_without_committing(self, db_session, employee):
        result = accepted_result(db_session, employee, MONDAY_7AM)

        record = write_check_in(db_session, employee, result, location="Lobby")

        assert record.id is not None
        assert record.location == "Lobby"
        assert employee.points_balance == result.total_points

        db_session.rollback()
        assert db_session.query(CheckIn).count() == 0
        assert db_session.query(PointTransaction).count() == 0

    def test_no_ledger_row_for_zero_points(self, db_session, make_user, company):
        company.settings = {**company.settings, "late_points": 0}
        db_session.commit()
        user = make_user()

        result = accepted_result(db_session, user, denver(2025, 6, 2, 8, 45))
        write_check_in(db_session, user, result)

        assert result.classification == "late"
        assert db_session.query(PointTransaction).filter(PointTransaction.user_id == user.id).count() == 0
