"""Session lifecycle tests."""

import threading
from decimal import Decimal

import pytest

from gamespace.core.errors import ConflictError, NotFoundError, ValidationError
from gamespace.models import DeviceType, OrderStatus, SessionStatus
from gamespace.services import session_service as session_module
from gamespace.services.session_service import DeviceLockRegistry


class TestStartSession:
    """Opening sessions."""

    def test_start_creates_token_order_and_session(self, session_service, devices):
        session = session_service.start_session(devices["PS5 1"].id, 2, token_no=7)
        assert session.status == SessionStatus.ACTIVE
        assert session.token.token_no == 7
        assert session.order is not None
        assert session.order.status == OrderStatus.ACTIVE
        assert session.order.order_number.startswith("GSO-")
        assert session.order.token_id == session.token_id

    def test_unknown_device(self, session_service, devices):
        with pytest.raises(NotFoundError):
            session_service.start_session(9999, 1, token_no=1)

    def test_too_many_players(self, session_service, devices):
        with pytest.raises(ValidationError):
            session_service.start_session(devices["PS4 1"].id, 3, token_no=1)

    def test_zero_players(self, session_service, devices):
        with pytest.raises(ValidationError):
            session_service.start_session(devices["PS5 1"].id, 0, token_no=1)

    def test_device_busy(self, session_service, devices):
        session_service.start_session(devices["PS5 1"].id, 1, token_no=1)
        with pytest.raises(ConflictError):
            session_service.start_session(devices["PS5 1"].id, 1, token_no=2)

    def test_pool_blocks_frame(self, session_service, devices):
        session_service.start_session(devices["POOL 1"].id, 1, token_no=1)
        with pytest.raises(ConflictError):
            session_service.start_session(devices["FRAME 1"].id, 2, token_no=2)

    def test_frame_blocks_pool(self, session_service, devices):
        session_service.start_session(devices["FRAME 1"].id, 2, token_no=1)
        with pytest.raises(ConflictError):
            session_service.start_session(devices["POOL 1"].id, 1, token_no=2)

    def test_device_reopens_after_end(self, session_service, devices):
        first = session_service.start_session(devices["POOL 1"].id, 1, token_no=1)
        session_service.end_session(first.id)
        second = session_service.start_session(devices["FRAME 1"].id, 3, token_no=2)
        assert second.status == SessionStatus.ACTIVE

    def test_token_bound_to_active_order(self, session_service, devices):
        session_service.start_session(devices["PS5 1"].id, 1, token_no=4)
        with pytest.raises(ConflictError):
            session_service.start_session(devices["PS5 2"].id, 1, token_no=4)

    def test_join_existing_order(self, session_service, devices):
        first = session_service.start_session(devices["PS5 1"].id, 1, token_no=4)
        second = session_service.start_session(
            devices["PS5 2"].id, 1, token_no=4, order_id=first.order_id
        )
        assert second.order_id == first.order_id
        assert second.token_id == first.token_id

    def test_join_unknown_order(self, session_service, devices):
        with pytest.raises(NotFoundError):
            session_service.start_session(devices["PS5 1"].id, 1, token_no=1, order_id=404)

    def test_token_reused_once_order_completed(self, session_service, order_service, devices):
        first = session_service.start_session(devices["PS5 1"].id, 1, token_no=9)
        order_service.update_order_status(first.order_id, OrderStatus.COMPLETED)
        second = session_service.start_session(devices["PS5 2"].id, 1, token_no=9)
        assert second.token_id == first.token_id
        assert second.order_id != first.order_id

    def test_frame_session_cost_set_up_front(self, session_service, devices):
        session = session_service.start_session(devices["FRAME 1"].id, 3, token_no=1)
        assert session.cost == Decimal("150.00")

    def test_active_webhook_sent(self, session_service, devices, webhook_calls):
        session_service.start_session(devices["VR 1"].id, 1, token_no=1)
        assert len(webhook_calls) == 1
        assert str(webhook_calls[0].url) == "http://hooks.test/active"


class TestEndSession:
    """Closing sessions."""

    def test_end_prices_by_duration(self, session_service, devices, backdate):
        session = session_service.start_session(devices["PS5 1"].id, 1, token_no=1)
        backdate(session, 60)
        ended = session_service.end_session(session.id)
        assert ended.status == SessionStatus.ENDED
        assert ended.end_time is not None
        assert ended.duration_minutes in (60, 61)
        assert ended.cost == Decimal("120.00")

    def test_short_session_is_free(self, session_service, devices):
        session = session_service.start_session(devices["PS5 1"].id, 1, token_no=1)
        ended = session_service.end_session(session.id)
        assert ended.cost == Decimal("0.00")

    def test_frame_end_cost_is_per_player(self, session_service, devices, backdate):
        session = session_service.start_session(devices["FRAME 1"].id, 4, token_no=1)
        backdate(session, 95)
        assert session_service.end_session(session.id).cost == Decimal("200.00")

    def test_end_twice(self, session_service, devices):
        session = session_service.start_session(devices["PS5 1"].id, 1, token_no=1)
        session_service.end_session(session.id)
        with pytest.raises(ValidationError):
            session_service.end_session(session.id)

    def test_end_unknown(self, session_service, devices):
        with pytest.raises(NotFoundError):
            session_service.end_session(12345)

    def test_ended_webhook_sent(self, session_service, devices, webhook_calls):
        session = session_service.start_session(devices["VR 1"].id, 1, token_no=1)
        session_service.end_session(session.id)
        assert [str(r.url) for r in webhook_calls] == [
            "http://hooks.test/active",
            "http://hooks.test/ended",
        ]


class TestFrameEdits:
    def test_update_player_count(self, session_service, devices):
        session = session_service.start_session(devices["FRAME 1"].id, 2, token_no=1)
        updated = session_service.update_player_count(session.id, 5)
        assert updated.player_count == 5
        assert updated.cost == Decimal("250.00")

    def test_update_player_count_over_limit(self, session_service, devices):
        session = session_service.start_session(devices["FRAME 1"].id, 2, token_no=1)
        with pytest.raises(ValidationError):
            session_service.update_player_count(session.id, 11)

    def test_player_count_only_for_frame(self, session_service, devices):
        session = session_service.start_session(devices["PS5 1"].id, 2, token_no=1)
        with pytest.raises(ValidationError):
            session_service.update_player_count(session.id, 3)

    def test_player_count_only_while_active(self, session_service, devices):
        session = session_service.start_session(devices["FRAME 1"].id, 2, token_no=1)
        session_service.end_session(session.id)
        with pytest.raises(ValidationError):
            session_service.update_player_count(session.id, 3)

    def test_update_frames_played(self, session_service, devices):
        session = session_service.start_session(devices["FRAME 1"].id, 3, token_no=1)
        updated = session_service.update_frames_played(session.id, 4, comments="two tables")
        assert updated.frames_played == 4
        assert updated.comments == "two tables"
        assert updated.cost == Decimal("150.00")

    def test_update_comments(self, session_service, devices):
        session = session_service.start_session(devices["PS5 1"].id, 1, token_no=1)
        assert session_service.update_comments(session.id, "controller 2 sticky").comments == "controller 2 sticky"

    def test_update_comments_rolls_back_on_failure(self, db_session, session_service, devices, monkeypatch):
        session = session_service.start_session(devices["PS5 1"].id, 1, token_no=1, comments="vip")

        def fail():
            raise RuntimeError("disk full")

        monkeypatch.setattr(db_session, "commit", fail)
        with pytest.raises(RuntimeError):
            session_service.update_comments(session.id, "lost")
        monkeypatch.undo()
        db_session.refresh(session)
        assert session.comments == "vip"

    def test_frame_costs_come_from_pricing(self, session_service, devices, backdate, monkeypatch):
        calls = []

        def fake_price(device_type, player_count, minutes):
            calls.append((device_type, player_count))
            return Decimal("99.00")

        monkeypatch.setattr(session_module, "calculate_price", fake_price)
        session = session_service.start_session(devices["FRAME 1"].id, 2, token_no=1)
        assert session.cost == Decimal("99.00")
        session_service.update_player_count(session.id, 3)
        session_service.update_frames_played(session.id, 2)
        backdate(session, 40)
        ended = session_service.end_session(session.id)
        assert ended.cost == Decimal("99.00")
        assert calls == [
            (DeviceType.FRAME, 2),
            (DeviceType.FRAME, 3),
            (DeviceType.FRAME, 3),
            (DeviceType.FRAME, 3),
        ]


class TestQueries:
    def test_available_devices_hide_shared_table(self, session_service, devices):
        total = len(devices)
        session_service.start_session(devices["POOL 1"].id, 1, token_no=1)
        available = session_service.get_available_devices()
        labels = {d.label for d in available}
        assert "POOL 1" not in labels
        assert "FRAME 1" not in labels
        assert len(available) == total - 2

    def test_today_tokens(self, session_service, devices):
        session_service.start_session(devices["PS5 1"].id, 1, token_no=1)
        session_service.start_session(devices["PS5 2"].id, 1, token_no=2)
        tokens = session_service.list_today_tokens()
        assert sorted(t.token_no for t in tokens) == [1, 2]

    def test_list_sessions_newest_first(self, session_service, devices, backdate):
        old = session_service.start_session(devices["PS5 1"].id, 1, token_no=1)
        backdate(old, 30)
        new = session_service.start_session(devices["PS5 2"].id, 1, token_no=2)
        assert [s.id for s in session_service.list_sessions()] == [new.id, old.id]


class TestDeviceLockRegistry:
    def test_pool_and_frame_share_a_key(self, devices):
        registry = DeviceLockRegistry()
        assert registry.key_for(devices["POOL 1"]) == registry.key_for(devices["FRAME 1"])
        assert registry.key_for(devices["PS5 1"]) != registry.key_for(devices["PS5 2"])

    def test_timeout_is_conflict(self, devices):
        registry = DeviceLockRegistry(timeout=0.05)
        held = threading.Event()
        release = threading.Event()

        def hold():
            with registry.hold(devices["POOL 1"]):
                held.set()
                release.wait(2)

        worker = threading.Thread(target=hold)
        worker.start()
        try:
            assert held.wait(2)
            with pytest.raises(ConflictError):
                with registry.hold(devices["FRAME 1"]):
                    pass
        finally:
            release.set()
            worker.join()
