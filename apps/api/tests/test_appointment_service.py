"""
Tests for the staff appointment service.

Coverage:
- Conflict detection on create (owner and agenda scope)
- Update re-checks with self-exclusion
- Cancel frees the slot; reactivation is re-checked
- Listing filters and ordering
- Listing cache invalidation on every mutation
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from podevender.core.exceptions import ConflictError, NotFoundError, ValidationError
from podevender.db.enums import Role
from podevender.schemas.appointment import AppointmentCreate, AppointmentUpdate
from podevender.services import appointment_service, messages
from podevender.services.appointment_service import AppointmentFilters
from podevender.services.listing_cache import ListingCache


def at(hour: int, minute: int = 0, day: int = 2) -> datetime:
    return datetime(2026, 3, day, hour, minute, tzinfo=timezone.utc)


def payload(start: datetime, end: datetime, **extra) -> AppointmentCreate:
    return AppointmentCreate(title=extra.pop("title", "Visita"), start_time=start, end_time=end, **extra)


# =============================================================================
# Create
# =============================================================================

def test_create_returns_created_message(db, test_org, test_user, test_agenda):
    result = appointment_service.create_appointment(
        db, test_org.id, test_user.id, payload(at(9), at(10), agenda_id=test_agenda.id)
    )
    assert result.message == messages.APPOINTMENT_CREATED
    assert result.appointment.status == "scheduled"
    assert result.appointment.organization_id == test_org.id
    assert result.appointment.start_time == at(9)


def test_overlapping_create_is_rejected(db, test_org, test_user, test_agenda):
    appointment_service.create_appointment(
        db, test_org.id, test_user.id, payload(at(9), at(10), agenda_id=test_agenda.id)
    )

    with pytest.raises(ConflictError) as exc:
        appointment_service.create_appointment(
            db, test_org.id, test_user.id, payload(at(9, 30), at(10, 30), agenda_id=test_agenda.id)
        )
    assert exc.value.message == messages.APPOINTMENT_CONFLICT


def test_back_to_back_create_succeeds(db, test_org, test_user):
    appointment_service.create_appointment(db, test_org.id, test_user.id, payload(at(9), at(10)))
    result = appointment_service.create_appointment(
        db, test_org.id, test_user.id, payload(at(10), at(11))
    )
    assert result.appointment.start_time == at(10)


def test_other_owner_does_not_conflict(db, test_org, test_user, user_factory):
    other = user_factory(test_org, Role.SELLER)
    appointment_service.create_appointment(db, test_org.id, other.id, payload(at(9), at(10)))

    result = appointment_service.create_appointment(
        db, test_org.id, test_user.id, payload(at(9), at(10))
    )
    assert result.appointment.user_id == test_user.id


def test_agenda_conflict_across_owners(db, test_org, test_user, user_factory, test_agenda):
    other = user_factory(test_org, Role.SELLER)
    appointment_service.create_appointment(
        db, test_org.id, other.id, payload(at(9), at(10), agenda_id=test_agenda.id)
    )

    with pytest.raises(ConflictError):
        appointment_service.create_appointment(
            db, test_org.id, test_user.id, payload(at(9), at(10), agenda_id=test_agenda.id)
        )


def test_cancelled_appointment_does_not_block(db, test_org, test_user, appointment_factory):
    appointment_factory(test_org, test_user, at(9), at(10), status="cancelled")

    result = appointment_service.create_appointment(
        db, test_org.id, test_user.id, payload(at(9), at(10))
    )
    assert result.appointment.status == "scheduled"


def test_empty_interval_is_rejected(db, test_org, test_user):
    with pytest.raises(ValidationError) as exc:
        appointment_service.create_appointment(
            db, test_org.id, test_user.id, payload(at(10), at(10))
        )
    assert exc.value.message == messages.INVALID_INTERVAL


def test_agenda_from_other_org_is_not_found(db, test_org, test_user):
    with pytest.raises(NotFoundError):
        appointment_service.create_appointment(
            db, test_org.id, test_user.id, payload(at(9), at(10), agenda_id=uuid4())
        )


def test_conflict_lookup_failure_blocks_write(db, test_org, test_user, monkeypatch):
    """If the conflict query fails the appointment is not written."""
    from sqlalchemy.exc import OperationalError

    from podevender.services import appointment_service as module

    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    monkeypatch.setattr(module, "find_conflict", broken)
    org_id, user_id = test_org.id, test_user.id
    with pytest.raises(OperationalError):
        appointment_service.create_appointment(db, org_id, user_id, payload(at(9), at(10)))
    db.rollback()

    assert appointment_service.list_appointments(db, org_id) == []


# =============================================================================
# Update
# =============================================================================

def test_update_without_time_change_skips_check(db, test_org, test_user, appointment_factory):
    appt = appointment_factory(test_org, test_user, at(9), at(10))

    result = appointment_service.update_appointment(
        db, test_org.id, appt.id, AppointmentUpdate(title="Retorno")
    )
    assert result.message == messages.APPOINTMENT_UPDATED
    assert result.appointment.title == "Retorno"


def test_update_excludes_itself(db, test_org, test_user, appointment_factory):
    appt = appointment_factory(test_org, test_user, at(9), at(10))

    result = appointment_service.update_appointment(
        db, test_org.id, appt.id, AppointmentUpdate(start_time=at(9, 30), end_time=at(10, 30))
    )
    assert result.appointment.start_time == at(9, 30)
    assert result.appointment.end_time == at(10, 30)


def test_update_into_other_appointment_conflicts(db, test_org, test_user, appointment_factory):
    appointment_factory(test_org, test_user, at(9), at(10))
    second = appointment_factory(test_org, test_user, at(11), at(12))

    with pytest.raises(ConflictError):
        appointment_service.update_appointment(
            db, test_org.id, second.id, AppointmentUpdate(start_time=at(9, 30))
        )


def test_update_single_bound_uses_stored_other_bound(db, test_org, test_user, appointment_factory):
    appt = appointment_factory(test_org, test_user, at(9), at(10))

    with pytest.raises(ValidationError):
        appointment_service.update_appointment(
            db, test_org.id, appt.id, AppointmentUpdate(start_time=at(10, 30))
        )

    result = appointment_service.update_appointment(
        db, test_org.id, appt.id, AppointmentUpdate(end_time=at(11))
    )
    assert result.appointment.start_time == at(9)
    assert result.appointment.end_time == at(11)


def test_reactivating_cancelled_appointment_is_checked(db, test_org, test_user, appointment_factory):
    cancelled = appointment_factory(test_org, test_user, at(9), at(10), status="cancelled")
    appointment_factory(test_org, test_user, at(9), at(10))

    with pytest.raises(ConflictError):
        appointment_service.update_appointment(
            db, test_org.id, cancelled.id, AppointmentUpdate(status="scheduled")
        )


def test_update_missing_appointment(db, test_org):
    with pytest.raises(NotFoundError):
        appointment_service.update_appointment(db, test_org.id, uuid4(), AppointmentUpdate(title="x"))


# =============================================================================
# Cancel / delete / reminders
# =============================================================================

def test_cancel_frees_the_slot(db, test_org, test_user, appointment_factory):
    appt = appointment_factory(test_org, test_user, at(9), at(10))

    result = appointment_service.cancel_appointment(db, test_org.id, appt.id)
    assert result.appointment.status == "cancelled"
    assert result.message == messages.APPOINTMENT_CANCELLED

    created = appointment_service.create_appointment(
        db, test_org.id, test_user.id, payload(at(9), at(10))
    )
    assert created.appointment.id != appt.id


def test_delete(db, test_org, test_user, appointment_factory):
    appt = appointment_factory(test_org, test_user, at(9), at(10))
    appt_id = appt.id

    assert appointment_service.delete_appointment(db, test_org.id, appt_id) == messages.APPOINTMENT_DELETED
    assert appointment_service.get_appointment(db, test_org.id, appt_id) is None


def test_mark_reminder_sent(db, test_org, test_user, appointment_factory):
    appt = appointment_factory(test_org, test_user, at(9), at(10))

    updated = appointment_service.mark_reminder_sent(db, test_org.id, appt.id)
    assert updated.reminder_sent is True
    assert updated.reminder_sent_at is not None


# =============================================================================
# Listing
# =============================================================================

def test_list_orders_by_start_and_requires_agenda(
    db, test_org, test_user, test_agenda, appointment_factory
):
    late = appointment_factory(test_org, test_user, at(15), at(16), agenda=test_agenda)
    early = appointment_factory(test_org, test_user, at(8), at(9), agenda=test_agenda)
    appointment_factory(test_org, test_user, at(11), at(12))  # no agenda

    rows = appointment_service.list_appointments(db, test_org.id)
    assert [r.id for r in rows] == [early.id, late.id]


def test_list_filters(db, test_org, test_user, test_agenda, appointment_factory):
    appointment_factory(test_org, test_user, at(9), at(10), agenda=test_agenda, title="Corte de cabelo")
    appointment_factory(
        test_org, test_user, at(9, day=3), at(10, day=3), agenda=test_agenda, status="cancelled", title="Barba"
    )
    appointment_factory(test_org, test_user, at(9, day=5), at(10, day=5), agenda=test_agenda, title="Corte")

    by_status = appointment_service.list_appointments(
        db, test_org.id, AppointmentFilters(status=frozenset({"cancelled"}))
    )
    assert [r.title for r in by_status] == ["Barba"]

    by_search = appointment_service.list_appointments(
        db, test_org.id, AppointmentFilters(search="corte")
    )
    assert {r.title for r in by_search} == {"Corte de cabelo", "Corte"}

    by_range = appointment_service.list_appointments(
        db, test_org.id, AppointmentFilters(start_date=at(0, day=3), end_date=at(23, day=4))
    )
    assert [r.title for r in by_range] == ["Barba"]


def test_list_search_treats_wildcards_literally(db, test_org, test_user, test_agenda, appointment_factory):
    appointment_factory(test_org, test_user, at(9), at(10), agenda=test_agenda, title="Desconto 50%")
    appointment_factory(test_org, test_user, at(11), at(12), agenda=test_agenda, title="Desconto 50 reais")

    rows = appointment_service.list_appointments(db, test_org.id, AppointmentFilters(search="50%"))
    assert [r.title for r in rows] == ["Desconto 50%"]


def test_list_is_scoped_to_org(db, test_org, test_user, test_agenda, appointment_factory):
    appointment_factory(test_org, test_user, at(9), at(10), agenda=test_agenda)
    assert appointment_service.list_appointments(db, uuid4()) == []


# =============================================================================
# Cache invalidation
# =============================================================================

def test_every_mutation_invalidates_org_cache(db, test_org, test_user):
    cache = ListingCache(ttl_seconds=60)
    org_id = test_org.id

    def prime():
        cache.set(org_id, AppointmentFilters(), ["stale"])

    prime()
    created = appointment_service.create_appointment(
        db, org_id, test_user.id, payload(at(9), at(10)), cache=cache
    ).appointment
    assert cache.get(org_id, AppointmentFilters()) is None

    prime()
    appointment_service.update_appointment(db, org_id, created.id, AppointmentUpdate(title="x"), cache=cache)
    assert cache.get(org_id, AppointmentFilters()) is None

    prime()
    appointment_service.mark_reminder_sent(db, org_id, created.id, cache=cache)
    assert cache.get(org_id, AppointmentFilters()) is None

    prime()
    appointment_service.cancel_appointment(db, org_id, created.id, cache=cache)
    assert cache.get(org_id, AppointmentFilters()) is None

    prime()
    appointment_service.delete_appointment(db, org_id, created.id, cache=cache)
    assert cache.get(org_id, AppointmentFilters()) is None


def test_failed_mutation_keeps_cache(db, test_org, test_user, appointment_factory):
    appointment_factory(test_org, test_user, at(9), at(10))
    cache = ListingCache(ttl_seconds=60)
    cache.set(test_org.id, AppointmentFilters(), ["cached"])

    with pytest.raises(ConflictError):
        appointment_service.create_appointment(
            db, test_org.id, test_user.id, payload(at(9), at(10)), cache=cache
        )
    assert cache.get(test_org.id, AppointmentFilters()) == ["cached"]


def test_scope_is_locked_before_the_check(db, test_org, test_user, test_agenda, monkeypatch):
    from podevender.services import appointment_service as module

    calls = []
    real_lock, real_find = module.lock_scope, module.find_conflict

    def lock(db, scope):
        calls.append(("lock", scope))
        return real_lock(db, scope)

    def find(db, candidate, scope, exclude_appointment_id=None):
        calls.append(("check", scope))
        return real_find(db, candidate, scope, exclude_appointment_id)

    monkeypatch.setattr(module, "lock_scope", lock)
    monkeypatch.setattr(module, "find_conflict", find)

    appointment_service.create_appointment(
        db, test_org.id, test_user.id, payload(at(9), at(10), agenda_id=test_agenda.id)
    )

    kinds = [kind for kind, _ in calls]
    assert kinds == ["lock", "lock", "check", "check"]
    assert {scope.agenda_id for _, scope in calls} == {None, test_agenda.id}


def test_constraint_violation_on_commit_is_a_conflict(
    db, session_factory, test_org, test_user, test_agenda, appointment_factory, monkeypatch
):
    """A booking that slips past the check is still rejected by the database."""
    from sqlalchemy.exc import IntegrityError

    from podevender.db.models import Appointment
    from podevender.services import appointment_service as module

    appointment_factory(test_org, test_user, at(9), at(10), agenda=test_agenda)

    def exclusion_violation():
        raise IntegrityError(
            "INSERT INTO appointments", {}, Exception("violates exclusion constraint")
        )

    monkeypatch.setattr(module, "find_conflict", lambda *args, **kwargs: None)
    monkeypatch.setattr(db, "commit", exclusion_violation)

    with pytest.raises(ConflictError) as exc:
        appointment_service.create_appointment(
            db, test_org.id, test_user.id, payload(at(9, 30), at(10, 30), agenda_id=test_agenda.id)
        )
    assert exc.value.message == messages.APPOINTMENT_CONFLICT

    with session_factory() as s:
        assert s.query(Appointment).count() == 1
