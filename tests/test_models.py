from sqlalchemy import event, inspect

from hotel_api.models import BLOCKING_STATUSES, Reservation, User
from hotel_api.models.reservation import BTREE_GIST_DDL, NO_OVERLAP_DDL


def test_overlap_constraint_is_attached_to_create_all():
    table = Reservation.__table__
    assert event.contains(table, "after_create", BTREE_GIST_DDL)
    assert event.contains(table, "after_create", NO_OVERLAP_DDL)


def test_overlap_constraint_covers_blocking_statuses():
    sql = NO_OVERLAP_DDL.statement
    assert "EXCLUDE USING gist" in sql
    assert "tsrange(check_in, check_out) WITH &&" in sql
    for status in BLOCKING_STATUSES:
        assert f"'{status.value}'" in sql
    assert "'CANCELED'" not in sql and "'CHECKED_OUT'" not in sql


def test_sqlite_schema_skips_the_overlap_constraint(engine):
    names = {c["name"] for c in inspect(engine).get_check_constraints("reservations")}
    assert "ck_reservations_range" in names
    assert "ex_reservations_room_no_overlap" not in names


def test_user_profile_columns_are_optional():
    cols = User.__table__.c
    assert cols.phone.nullable and cols.address.nullable
