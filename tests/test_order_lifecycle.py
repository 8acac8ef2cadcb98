"""Tests for the order lifecycle service."""
import pytest
from sqlalchemy.exc import OperationalError

from fabnstitch.errors import (
    ConflictError,
    ForbiddenError,
    IllegalTransitionError,
    InvalidInputError,
    NotFoundError,
    OrderNotFoundError,
    PersistenceError,
)
from fabnstitch.models.fabric import Fabric
from fabnstitch.models.measurement import Measurement
from fabnstitch.models.order import Order, OrderStatus, OrderStatusHistory
from fabnstitch.models.user import UserRole
from fabnstitch.schemas.order import OrderCreate
from fabnstitch.services import order_lifecycle
from fabnstitch.services.order_lifecycle import (
    Actor,
    allowed_transitions,
    assign_tailor,
    backfill_missing_history,
    create_order,
    generate_order_id,
    get_timeline,
    track_order,
    transition,
    transition_table,
)


def _history_count(db, order):
    return db.query(OrderStatusHistory).filter(OrderStatusHistory.order_id == order.id).count()


class TestTransitionPolicy:
    def test_admin_may_pick_any_other_status(self):
        allowed = allowed_transitions(OrderStatus.PENDING, UserRole.ADMIN)
        assert OrderStatus.PENDING not in allowed
        assert allowed == set(OrderStatus) - {OrderStatus.PENDING}

    def test_admin_may_reopen_terminal_orders(self):
        assert OrderStatus.STITCHING in allowed_transitions(OrderStatus.DELIVERED, UserRole.ADMIN)

    def test_tailor_moves_one_stage_at_a_time(self):
        assert allowed_transitions(OrderStatus.CONFIRMED, UserRole.TAILOR) == {OrderStatus.STITCHING}
        assert allowed_transitions(OrderStatus.STITCHING, UserRole.TAILOR) == {
            OrderStatus.CONFIRMED, OrderStatus.FINISHING
        }
        assert allowed_transitions(OrderStatus.READY, UserRole.TAILOR) == {OrderStatus.QUALITY_CHECK}

    @pytest.mark.parametrize("status", [
        OrderStatus.PENDING, OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.CANCELLED
    ])
    def test_tailor_cannot_leave_non_workshop_statuses(self, status):
        assert allowed_transitions(status, UserRole.TAILOR) == set()

    @pytest.mark.parametrize("status", list(OrderStatus))
    def test_customer_has_no_moves(self, status):
        assert allowed_transitions(status, UserRole.CUSTOMER) == set()

    def test_transition_table_lists_targets_in_status_order(self):
        table = transition_table(UserRole.TAILOR)
        assert set(table) == {s.value for s in OrderStatus}
        assert table["stitching"] == [OrderStatus.CONFIRMED, OrderStatus.FINISHING]
        assert table["pending"] == []


class TestOrderId:
    def test_format(self):
        order_id = generate_order_id()
        prefix, millis, suffix = order_id.split("-")
        assert prefix == "ORD"
        assert millis.isdigit()
        assert len(suffix) == 6

    def test_unique_within_the_same_millisecond(self, monkeypatch):
        monkeypatch.setattr(order_lifecycle.time, "time", lambda: 1700000000.0)
        ids = {generate_order_id() for _ in range(500)}
        assert len(ids) == 500


class TestCreateOrder:
    def test_new_order_is_pending_with_one_history_entry(self, db_session, order_factory, admin):
        order = order_factory()

        assert order.status == OrderStatus.PENDING
        timeline = get_timeline(db_session, order.id)
        assert len(timeline) == 1
        assert timeline[0].status == OrderStatus.PENDING
        assert timeline[0].notes == "Order created by admin"
        assert timeline[0].updated_by_name == admin.name

    def test_records_measurements(self, db_session, order_factory, customer):
        order_factory(chest=40, neck=15.5)

        measurement = db_session.query(Measurement).filter(Measurement.user_id == customer.id).one()
        assert measurement.chest == 40
        assert measurement.neck == 15.5

    def test_second_order_updates_the_same_measurement_row(self, db_session, order_factory, customer):
        order_factory(chest=40, waist=34)
        order_factory(chest=41, waist=None)

        rows = db_session.query(Measurement).filter(Measurement.user_id == customer.id).all()
        assert len(rows) == 1
        assert rows[0].chest == 41
        assert rows[0].waist == 34

    def test_delivery_address_defaults_to_customer_address(self, order_factory):
        assert order_factory().delivery_address == "123 Main Street"

    def test_catalogue_fabric(self, db_session, order_factory):
        fabric = Fabric(name="English Tweed", material="Tweed", color="Brown", price=7500, stock=3)
        db_session.add(fabric)
        db_session.commit()

        order = order_factory(fabric_id=fabric.id, fabric_name=None, fabric_color=None)
        assert order.display_fabric_name == "English Tweed"
        assert order.display_fabric_color == "Brown"

    def test_unknown_fabric(self, order_factory):
        with pytest.raises(NotFoundError):
            order_factory(fabric_id=999)

    def test_fabric_required(self, order_factory):
        with pytest.raises(InvalidInputError):
            order_factory(fabric_name=None)

    def test_unknown_customer(self, order_factory):
        with pytest.raises(NotFoundError):
            order_factory(customer_id=999)

    def test_customer_must_have_customer_role(self, order_factory, tailor):
        with pytest.raises(NotFoundError):
            order_factory(customer_id=tailor.id)

    def test_only_admins_create_orders(self, db_session, tailor, customer):
        data = OrderCreate(customer_id=customer.id, style="Blazer", fabric_name="Wool", price=100)
        with pytest.raises(ForbiddenError):
            create_order(db_session, Actor.from_user(tailor), data)
        assert db_session.query(Order).count() == 0


class TestTransition:
    def test_admin_transition_updates_status_and_timeline(self, db_session, order_factory, admin):
        order = order_factory()

        order = transition(db_session, order.order_id, OrderStatus.CONFIRMED, Actor.from_user(admin))

        assert order.status == OrderStatus.CONFIRMED
        timeline = get_timeline(db_session, order.id)
        assert [e.status for e in timeline] == [OrderStatus.PENDING, OrderStatus.CONFIRMED]
        assert timeline[-1].notes == "Status updated to confirmed"

    def test_note_is_kept(self, db_session, order_factory, admin):
        order = order_factory()
        transition(db_session, order.id, "cancelled", Actor.from_user(admin), "Customer changed mind")
        assert get_timeline(db_session, order.id)[-1].notes == "Customer changed mind"

    def test_accepts_internal_id_or_token(self, db_session, order_factory, admin):
        order = order_factory()
        transition(db_session, order.id, OrderStatus.CONFIRMED, Actor.from_user(admin))
        transition(db_session, order.order_id, OrderStatus.STITCHING, Actor.from_user(admin))
        assert order.status == OrderStatus.STITCHING

    def test_last_timeline_entry_always_matches_status(self, db_session, order_factory, admin, tailor):
        order = order_factory()
        assign_tailor(db_session, Actor.from_user(admin), order.order_id, tailor.id)
        for target in ["stitching", "finishing", "stitching", "finishing", "quality_check", "ready"]:
            order = transition(db_session, order.order_id, target, Actor.from_user(tailor))
            timeline = get_timeline(db_session, order.id)
            assert timeline[-1].status == order.status

        order = transition(db_session, order.order_id, "shipped", Actor.from_user(admin))
        dates = [e.date for e in get_timeline(db_session, order.id)]
        assert dates == sorted(dates)

    def test_same_status_is_rejected(self, db_session, order_factory, admin):
        order = order_factory()
        with pytest.raises(IllegalTransitionError):
            transition(db_session, order.id, OrderStatus.PENDING, Actor.from_user(admin))
        assert _history_count(db_session, order) == 1

    @pytest.mark.parametrize("target", list(OrderStatus))
    def test_customer_is_always_forbidden(self, db_session, order_factory, customer, target):
        order = order_factory()
        with pytest.raises(ForbiddenError):
            transition(db_session, order.id, target, Actor.from_user(customer))
        db_session.refresh(order)
        assert order.status == OrderStatus.PENDING
        assert _history_count(db_session, order) == 1

    def test_tailor_must_be_assigned(self, db_session, order_factory, admin, make_user):
        other_tailor = make_user(UserRole.TAILOR)
        order = order_factory()
        transition(db_session, order.id, OrderStatus.CONFIRMED, Actor.from_user(admin))

        with pytest.raises(ForbiddenError):
            transition(db_session, order.id, OrderStatus.STITCHING, Actor.from_user(other_tailor))

    def test_tailor_cannot_skip_stages(self, db_session, order_factory, admin, tailor):
        order = order_factory()
        assign_tailor(db_session, Actor.from_user(admin), order.order_id, tailor.id)
        transition(db_session, order.id, OrderStatus.STITCHING, Actor.from_user(tailor))

        with pytest.raises(IllegalTransitionError) as exc_info:
            transition(db_session, order.id, OrderStatus.DELIVERED, Actor.from_user(tailor))
        assert isinstance(exc_info.value, ConflictError)

        db_session.refresh(order)
        assert order.status == OrderStatus.STITCHING

    def test_unknown_status_string(self, db_session, order_factory, admin):
        order = order_factory()
        with pytest.raises(InvalidInputError):
            transition(db_session, order.id, "teleported", Actor.from_user(admin))

    def test_unknown_order(self, db_session, admin):
        with pytest.raises(OrderNotFoundError):
            transition(db_session, "ORD-404", OrderStatus.CONFIRMED, Actor.from_user(admin))

    def test_failed_commit_leaves_status_and_history_untouched(self, db_session, order_factory, admin, monkeypatch):
        order = order_factory()

        def failing_commit():
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db_session, "commit", failing_commit)
        with pytest.raises(PersistenceError):
            transition(db_session, order.id, OrderStatus.CONFIRMED, Actor.from_user(admin))
        monkeypatch.undo()

        reloaded = db_session.query(Order).filter(Order.id == order.id).one()
        assert reloaded.status == OrderStatus.PENDING
        assert _history_count(db_session, reloaded) == 1

    def test_stale_read_loses_the_race(self, db_session, session_factory, order_factory, admin):
        order = order_factory()
        order_id = order.order_id
        # Load the order into this session, then change it behind its back
        assert order.status == OrderStatus.PENDING

        other = session_factory()
        try:
            transition(other, order_id, OrderStatus.CONFIRMED, Actor(id=admin.id, role=UserRole.ADMIN))
        finally:
            other.close()

        with pytest.raises(ConflictError):
            transition(db_session, order_id, OrderStatus.CANCELLED, Actor(id=admin.id, role=UserRole.ADMIN))

        assert [e.status for e in get_timeline(db_session, order.id)] == [
            OrderStatus.PENDING, OrderStatus.CONFIRMED
        ]


class TestAssignTailor:
    def test_assigning_a_pending_order_confirms_it(self, db_session, order_factory, admin, tailor):
        order = order_factory()

        order = assign_tailor(db_session, Actor.from_user(admin), order.order_id, tailor.id)

        assert order.tailor_id == tailor.id
        assert order.status == OrderStatus.CONFIRMED
        timeline = get_timeline(db_session, order.id)
        assert len(timeline) == 2
        assert timeline[-1].notes == "Order confirmed and assigned to tailor"

    def test_reassigning_does_not_touch_history(self, db_session, order_factory, admin, tailor, make_user):
        order = order_factory()
        assign_tailor(db_session, Actor.from_user(admin), order.order_id, tailor.id)
        transition(db_session, order.id, OrderStatus.STITCHING, Actor.from_user(tailor))

        replacement = make_user(UserRole.TAILOR)
        order = assign_tailor(db_session, Actor.from_user(admin), order.order_id, replacement.id)

        assert order.tailor_id == replacement.id
        assert order.status == OrderStatus.STITCHING
        assert _history_count(db_session, order) == 3

    def test_target_must_be_a_tailor(self, db_session, order_factory, admin, customer):
        order = order_factory()
        with pytest.raises(NotFoundError):
            assign_tailor(db_session, Actor.from_user(admin), order.order_id, customer.id)

    def test_only_admins_assign(self, db_session, order_factory, tailor):
        order = order_factory()
        with pytest.raises(ForbiddenError):
            assign_tailor(db_session, Actor.from_user(tailor), order.order_id, tailor.id)


class TestTimeline:
    def test_order_without_history_has_empty_timeline(self, db_session, customer):
        order = Order(order_id="ORD-LEGACY-1", user_id=customer.id, style="Kurta", status=OrderStatus.READY)
        db_session.add(order)
        db_session.commit()

        assert get_timeline(db_session, order.id) == []

    def test_tracking_is_sanitized(self, db_session, order_factory, admin, tailor):
        order = order_factory()
        assign_tailor(db_session, Actor.from_user(admin), order.order_id, tailor.id)

        tracked = track_order(db_session, order.order_id)

        assert tracked.order.order_id == order.order_id
        assert tracked.order.status == OrderStatus.CONFIRMED
        assert tracked.order.fabric_name == "Premium Italian Wool"
        assert [entry.status for entry in tracked.history] == [OrderStatus.PENDING, OrderStatus.CONFIRMED]
        assert all("updated_by_name" not in entry.model_dump() for entry in tracked.history)
        dumped = tracked.order.model_dump()
        assert "price" not in dumped
        assert "id" not in dumped

    def test_tracking_unknown_token(self, db_session, order_factory):
        order = order_factory()
        with pytest.raises(OrderNotFoundError):
            track_order(db_session, str(order.id))


class TestBackfill:
    def test_adds_one_entry_per_order_without_history(self, db_session, order_factory, customer, admin):
        order_factory()
        legacy = Order(order_id="ORD-LEGACY-2", user_id=customer.id, style="Suit", status=OrderStatus.STITCHING)
        db_session.add(legacy)
        db_session.commit()

        assert backfill_missing_history(db_session) == 1

        timeline = get_timeline(db_session, legacy.id)
        assert len(timeline) == 1
        assert timeline[0].status == OrderStatus.STITCHING
        assert timeline[0].notes == "Initial status (migrated)"
        assert timeline[0].updated_by_name == admin.name

    def test_nothing_to_do(self, db_session, order_factory):
        order_factory()
        assert backfill_missing_history(db_session) == 0
