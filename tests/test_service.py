"""Tests for the alert service facade."""

import asyncio
import random
import threading
from datetime import timedelta

import pytest

from alert_engine.alert_store import AlertType, Severity, SubjectRef
from alert_engine.generator import AUTO_RESOLVER
from alert_engine.scheduler import AsyncioTicker, ManualTicker, ThreadingTicker
from alert_engine.service import AlertService


class TestRaiseAlert:
    def test_newest_first_after_any_raise_sequence(self, service, clock):
        base = clock()
        for minutes in (3, 0, 10, 1, 7):
            service.raise_alert(AlertType.PAYMENT_DUE, timestamp=base - timedelta(minutes=minutes))

        timestamps = [a.timestamp for a in service.get_alerts()]
        assert timestamps == sorted(timestamps, reverse=True)

    def test_unknown_type_returns_none(self, service):
        assert service.raise_alert("meteor_strike") is None
        assert service.get_alerts() == []

    def test_string_type_and_severity(self, service):
        alert = service.raise_alert("system_error", severity="low")
        assert alert.alert_type == AlertType.SYSTEM_ERROR
        assert alert.severity == Severity.LOW

    def test_unknown_severity_falls_back_to_configured(self, service):
        alert = service.raise_alert(AlertType.QUOTE_EXPIRING, severity="apocalyptic")
        assert alert.severity == Severity.HIGH

    def test_subject_kept(self, service):
        subject = SubjectRef(client_id="client-2", client_name="Kouassi Yeo", quote_id="quote-456")
        alert = service.raise_alert(AlertType.QUOTE_EXPIRING, subject=subject)
        assert service.get_alert(alert.id).subject == subject

    def test_delivery_failure_does_not_affect_store(self, service, channels):
        def explode(*args, **kwargs):
            raise RuntimeError("push platform crashed")

        channels.push.show = explode
        alert = service.raise_alert(AlertType.PAYMENT_DUE)

        assert alert is not None
        assert service.get_alert(alert.id) is not None
        assert len(channels.email.sent) == 1

    def test_disabled_type_still_stored_but_not_delivered(self, service, channels):
        service.update_settings({"alert_types": {"payment_due": {"enabled": False}}})
        alert = service.raise_alert(AlertType.PAYMENT_DUE)

        assert service.get_alert(alert.id) is not None
        assert channels.push.shown == []
        assert channels.email.sent == []


class TestReadLifecycle:
    def test_quote_expiring_read_flow(self, service):
        service.raise_alert(AlertType.QUOTE_EXPIRING, severity=Severity.HIGH)
        unread = service.get_unread_alerts()
        assert len(unread) == 1

        service.mark_as_read(unread[0].id)

        assert service.get_unread_alerts() == []
        assert service.get_alerts()[0].is_read is True

    def test_mark_all_as_read(self, service):
        for alert_type in (AlertType.QUOTE_REQUEST, AlertType.PAYMENT_DUE, AlertType.SYSTEM_ERROR):
            service.raise_alert(alert_type)

        assert service.mark_all_as_read() == 3
        assert service.get_unread_alerts() == []

    def test_unknown_ids_are_no_ops(self, service):
        assert service.mark_as_read("missing") is False
        assert service.resolve_alert("missing", "alice") is False


class TestResolve:
    def test_idempotent_first_resolver_kept(self, service, clock):
        alert = service.raise_alert(AlertType.PAYMENT_DUE)
        first_time = clock()

        assert service.resolve_alert(alert.id, "alice") is True
        clock.now = clock.now + timedelta(minutes=15)
        assert service.resolve_alert(alert.id, "bob") is False

        stored = service.get_alert(alert.id)
        assert stored.resolved_by == "alice"
        assert stored.resolved_at == first_time

    def test_resolved_alert_not_unread(self, service):
        alert = service.raise_alert(AlertType.SYSTEM_ERROR)
        assert len(service.get_critical_alerts()) == 1

        service.resolve_alert(alert.id, "alice")

        assert service.get_unread_alerts() == []
        assert service.get_critical_alerts() == []
        assert service.get_alert(alert.id).is_read is False

    def test_concurrent_resolvers_exactly_one_wins(self, service):
        alert = service.raise_alert(AlertType.PAYMENT_DUE)
        barrier = threading.Barrier(2)
        outcomes = {}

        def resolve(user):
            barrier.wait()
            outcomes[user] = service.resolve_alert(alert.id, user)

        threads = [threading.Thread(target=resolve, args=(u,)) for u in ("alice", "bob")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        winners = [user for user, won in outcomes.items() if won]
        assert len(winners) == 1
        assert service.get_alert(alert.id).resolved_by == winners[0]


class TestSubscriptions:
    def test_subscribe_invoked_immediately_with_no_alerts(self, service):
        received = []
        service.subscribe(received.append)
        assert received == [[]]

    def test_every_mutation_broadcasts(self, service):
        received = []
        service.subscribe(received.append)

        alert = service.raise_alert(AlertType.QUOTE_REQUEST)
        service.mark_as_read(alert.id)
        service.resolve_alert(alert.id, "alice")

        assert len(received) == 4
        assert received[1][0].is_read is False
        assert received[2][0].is_read is True
        assert received[3][0].resolved_by == "alice"

    def test_unsubscribe_stops_only_that_observer(self, service):
        first, second = [], []
        unsubscribe = service.subscribe(first.append)
        service.subscribe(second.append)

        unsubscribe()
        service.raise_alert(AlertType.QUOTE_REQUEST)

        assert len(first) == 1
        assert len(second) == 2

    def test_observers_cannot_mutate_store(self, service):
        service.raise_alert(AlertType.QUOTE_REQUEST)

        def vandal(alerts):
            for alert in alerts:
                alert.is_read = True

        service.subscribe(vandal)
        assert len(service.get_unread_alerts()) == 1

    def test_subscribe_while_other_thread_mutates(self, service):
        errors = []

        def subscriber():
            for _ in range(200):
                service.subscribe(lambda alerts: None)()

        def mutator():
            try:
                for _ in range(200):
                    alert = service.raise_alert(AlertType.QUOTE_REQUEST)
                    service.mark_as_read(alert.id)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=subscriber), threading.Thread(target=mutator)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert not any(thread.is_alive() for thread in threads)
        assert errors == []
        assert len(service.get_alerts()) == 200

    def test_broadcaster_not_exposed(self, service):
        assert not hasattr(service, "broadcaster")


class TestSettings:
    def test_push_disabled_alert_still_stored(self, service, channels):
        service.update_settings({"enable_push_alerts": False})
        alert = service.raise_alert(AlertType.QUOTE_EXPIRING, severity=Severity.HIGH)

        assert channels.push.shown == []
        assert service.get_alert(alert.id) is not None
        assert len(channels.email.sent) == 1

    def test_quiet_hours_suppress_delivery(self, service, channels, clock):
        clock.now = clock.now.replace(hour=23)
        service.raise_alert(AlertType.SYSTEM_ERROR)

        assert channels.push.shown == []
        assert channels.email.sent == []
        assert len(service.get_alerts()) == 1

    def test_non_mapping_update_ignored(self, service):
        assert service.update_settings(["nope"]).enable_push_alerts is True

    def test_settings_persist_across_services(self, kv_store, channels, clock, executor):
        first = AlertService(kv_store=kv_store, channels=channels, clock=clock,
                             ticker=ManualTicker(), executor=executor,
                             synthetic_enabled=False)
        first.update_settings({"enable_sms_alerts": True})

        second = AlertService(kv_store=kv_store, channels=channels, clock=clock,
                              ticker=ManualTicker(), executor=executor,
                              synthetic_enabled=False)
        assert second.get_settings().enable_sms_alerts is True


class TestMetrics:
    def test_resolution_rate(self, service):
        assert service.get_metrics().resolution_rate == 0

        alerts = [service.raise_alert(AlertType.PAYMENT_DUE) for _ in range(4)]
        service.resolve_alert(alerts[0].id, "alice")

        metrics = service.get_metrics()
        assert metrics.total_alerts == 4
        assert metrics.resolution_rate == pytest.approx(0.25)
        assert metrics.alerts_by_type == {"payment_due": 4}


class TestSyntheticJobs:
    @pytest.fixture
    def synthetic_service(self, kv_store, channels, clock, executor):
        ticker = ManualTicker()
        svc = AlertService(
            kv_store=kv_store,
            channels=channels,
            clock=clock,
            ticker=ticker,
            executor=executor,
            rng=random.Random(7),
            synthetic_enabled=True,
            synthetic_interval=30,
            auto_resolve_interval=60,
            synthetic_probability=1.0,
            auto_resolve_probability=1.0,
        )
        yield svc, ticker
        svc.shutdown()

    def test_nothing_before_start(self, synthetic_service):
        svc, ticker = synthetic_service
        ticker.advance(300)
        assert svc.get_alerts() == []

    def test_generates_and_auto_resolves(self, synthetic_service):
        svc, ticker = synthetic_service
        svc.start()

        ticker.advance(60)

        alerts = svc.get_alerts()
        assert len(alerts) == 2
        resolved = [a for a in alerts if a.is_resolved]
        assert len(resolved) == 1
        assert resolved[0].resolved_by == AUTO_RESOLVER

    def test_auto_resolve_never_touches_resolved(self, synthetic_service):
        svc, ticker = synthetic_service
        svc.start()

        ticker.advance(600)

        resolved = [a for a in svc.get_alerts() if a.is_resolved]
        assert all(a.resolved_by == AUTO_RESOLVER for a in resolved)
        assert len(resolved) == 10

    def test_shutdown_stops_jobs(self, synthetic_service):
        svc, ticker = synthetic_service
        svc.start()
        ticker.advance(30)
        svc.shutdown()
        svc.shutdown()

        ticker.advance(300)
        assert len(svc.get_alerts()) == 1
        assert svc.running is False


class TestLifecycle:
    def test_start_twice_is_harmless(self, service):
        service.start()
        service.start()
        assert service.running is True

    def test_cannot_restart_after_shutdown(self, service):
        service.shutdown()
        service.start()
        assert service.running is False

    def test_default_ticker_starts_outside_event_loop(self, kv_store, channels, executor):
        svc = AlertService(kv_store=kv_store, channels=channels, executor=executor)
        try:
            assert isinstance(svc.ticker, ThreadingTicker)
            svc.start()
            assert svc.running is True
        finally:
            svc.shutdown()

    def test_asyncio_ticker_without_loop_does_not_raise(self, kv_store, channels, executor):
        svc = AlertService(kv_store=kv_store, channels=channels, executor=executor,
                           ticker=AsyncioTicker(), synthetic_enabled=False)
        svc.start()
        assert svc.running is False
        svc.shutdown()

    def test_raise_after_shutdown_still_stores(self, service, channels):
        service.shutdown()
        alert = service.raise_alert(AlertType.PAYMENT_DUE)
        assert service.get_alert(alert.id) is not None

    def test_run_until_shutdown(self, kv_store, channels, clock, executor):
        async def scenario():
            svc = AlertService(kv_store=kv_store, channels=channels, clock=clock,
                               executor=executor, synthetic_enabled=False)
            task = asyncio.create_task(svc.run())
            await asyncio.sleep(0.05)
            assert svc.running is True
            svc.shutdown()
            await asyncio.wait_for(task, timeout=3)
            return svc

        svc = asyncio.run(scenario())
        assert svc.running is False

    def test_status(self, service):
        service.raise_alert(AlertType.PAYMENT_DUE)
        status = service.get_status()
        assert status["alerts"] == 1
        assert status["running"] is False
        assert status["recent_deliveries"] == 2
