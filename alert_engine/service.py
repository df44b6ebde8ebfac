"""
Alert engine service.

Ties together all components:
- Alert Store: in-memory alerts, the source of truth
- Broadcaster: pushes newest-first snapshots to subscribers
- Settings Store: persisted delivery preferences
- Dispatcher: push/email/SMS fan-out gated by settings and quiet hours
- Generator: synthetic alerts and auto-resolution on a ticker

Each instance is explicitly constructed and owns its timers; call start()
to begin background generation and shutdown() to release it.
"""

import asyncio
import logging
import random
import signal
from concurrent.futures import Executor
from datetime import datetime
from typing import Any, Callable, Optional

from .alert_store import Alert, AlertMetrics, AlertStore, AlertType, Severity, SubjectRef
from .broadcaster import Broadcaster
from .channels.factory import DeliveryChannels, create_channels_from_config
from .config import config
from .dispatcher import DeliveryDispatcher
from .generator import AlertGenerator, build_alert
from .metrics import compute_metrics
from .scheduler import Ticker, default_ticker
from .settings import AlertSettings, SettingsStore
from .storage import KeyValueStore, SQLiteKeyValueStore

logger = logging.getLogger(__name__)


class AlertService:
    """
    Main entry point for alert state, lifecycle and delivery.

    Every mutation holds the store lock and broadcasts before releasing it,
    so observers see changes in the order they were applied.
    """

    def __init__(
        self,
        kv_store: Optional[KeyValueStore] = None,
        channels: Optional[DeliveryChannels] = None,
        clock: Callable[[], datetime] = datetime.now,
        ticker: Optional[Ticker] = None,
        executor: Optional[Executor] = None,
        rng: Optional[random.Random] = None,
        synthetic_enabled: Optional[bool] = None,
        synthetic_interval: Optional[float] = None,
        auto_resolve_interval: Optional[float] = None,
        synthetic_probability: Optional[float] = None,
        auto_resolve_probability: Optional[float] = None,
    ):
        self.clock = clock
        self.kv_store = kv_store or SQLiteKeyValueStore(config.get_db_path())
        self.settings_store = SettingsStore(self.kv_store)
        self.store = AlertStore(clock=clock)
        self._broadcaster: Broadcaster[Alert] = Broadcaster(self.store.snapshot)

        self.channels = channels or create_channels_from_config()
        self.dispatcher = DeliveryDispatcher(
            self.channels, self.kv_store, clock=clock, executor=executor
        )

        self.generator = AlertGenerator(
            self,
            rng=rng,
            synthetic_probability=(
                config.SYNTHETIC_PROBABILITY if synthetic_probability is None
                else synthetic_probability
            ),
            auto_resolve_probability=(
                config.AUTO_RESOLVE_PROBABILITY if auto_resolve_probability is None
                else auto_resolve_probability
            ),
        )

        self.ticker = ticker or default_ticker()
        if config.SYNTHETIC_ALERTS_ENABLED if synthetic_enabled is None else synthetic_enabled:
            self.ticker.every(
                synthetic_interval or config.SYNTHETIC_INTERVAL,
                self.generator.generate_random,
                name="synthetic-alerts",
            )
            self.ticker.every(
                auto_resolve_interval or config.AUTO_RESOLVE_INTERVAL,
                self.generator.auto_resolve,
                name="auto-resolve",
            )

        self._running = False
        self._shut_down = False

    # Lifecycle

    def start(self) -> None:
        """Start background generation and auto-resolution."""
        if self._running:
            logger.warning("Alert service already running")
            return
        if self._shut_down:
            logger.warning("Alert service was shut down and cannot be restarted")
            return

        logger.info("Starting alert service")
        try:
            self.ticker.start()
        except RuntimeError as e:
            # AsyncioTicker outside a running loop
            logger.error(f"Could not start {type(self.ticker).__name__}: {e}")
            return
        self._running = True
        logger.info(f"Alert service started ({len(self.ticker.jobs)} scheduled job(s))")

    def shutdown(self) -> None:
        """Stop timers and stop accepting deliveries. Safe to call repeatedly."""
        if self._shut_down:
            return

        logger.info("Stopping alert service")
        self._running = False
        self._shut_down = True
        self.ticker.stop()
        self.dispatcher.shutdown(wait=False)
        logger.info("Alert service stopped")

    @property
    def running(self) -> bool:
        return self._running

    async def run(self) -> None:
        """Run the service until interrupted."""
        self.start()

        # Set up signal handlers
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.shutdown)
            except NotImplementedError:
                # Not available on this platform
                pass

        try:
            # Wait until stopped
            while self._running:
                await asyncio.sleep(1)
        finally:
            self.shutdown()

    # Subscriptions and queries

    def subscribe(self, observer: Callable[[list[Alert]], None]) -> Callable[[], None]:
        """Receive the newest-first alert list now and after every change."""
        with self.store.lock:
            return self._broadcaster.subscribe(observer)

    def get_alerts(self) -> list[Alert]:
        """All alerts, newest first."""
        return self.store.snapshot()

    def get_unread_alerts(self) -> list[Alert]:
        """Unread, unresolved alerts, newest first."""
        return self.store.list_unread()

    def get_critical_alerts(self) -> list[Alert]:
        """Unresolved critical alerts, newest first."""
        return self.store.list_critical()

    def get_alert(self, alert_id: str) -> Alert | None:
        return self.store.get(alert_id)

    def unresolved_ids(self) -> list[str]:
        return self.store.list_unresolved_ids()

    def get_metrics(self) -> AlertMetrics:
        """Statistics over the current alerts, computed fresh."""
        return compute_metrics(self.store.snapshot())

    # Alert creation

    def raise_alert(
        self,
        alert_type: AlertType | str,
        severity: Severity | str | None = None,
        title: str | None = None,
        message: str | None = None,
        subject: SubjectRef | None = None,
        action_url: str | None = None,
        action_text: str | None = None,
        timestamp: datetime | None = None,
    ) -> Alert | None:
        """
        Create an alert from an external event and deliver it.

        Args:
            alert_type: AlertType or its string value
            severity: Override for the configured severity of the type
            title: Override for the template title
            message: Override for the template message
            subject: Entity the alert is about
            action_url: Override for the template call-to-action URL
            action_text: Override for the template call-to-action label
            timestamp: When the event happened (defaults to now)

        Returns:
            A copy of the stored alert, or None if it could not be created
        """
        parsed_type = AlertType.parse(alert_type)
        if parsed_type is None:
            logger.warning(f"Ignoring alert with unknown type: {alert_type!r}")
            return None

        parsed_severity = None
        if severity is not None:
            try:
                parsed_severity = severity if isinstance(severity, Severity) else Severity(severity)
            except ValueError:
                logger.warning(f"Unknown severity {severity!r}, using configured severity")

        try:
            settings = self.settings_store.get()
            with self.store.lock:
                alert = build_alert(
                    alert_id=self.store.generate_id(),
                    alert_type=parsed_type,
                    timestamp=timestamp or self.clock(),
                    settings=settings,
                    severity=parsed_severity,
                    title=title,
                    message=message,
                    subject=subject,
                    action_url=action_url,
                    action_text=action_text,
                )
                stored = self.store.add(alert)
                self._broadcaster.publish()
        except Exception as e:
            logger.error(f"Failed to raise {parsed_type.value} alert: {e}")
            return None

        # Store insertion has happened; delivery problems can't undo it
        self.dispatcher.dispatch(stored, settings)
        return stored

    # Lifecycle controller

    def mark_as_read(self, alert_id: str) -> bool:
        """Mark an alert read. Unknown or already-read ids are a no-op."""
        with self.store.lock:
            changed = self.store.mark_read(alert_id)
            self._broadcaster.publish()
        return changed

    def mark_all_as_read(self) -> int:
        """Mark every alert read. Returns how many alerts changed."""
        with self.store.lock:
            changed = self.store.mark_all_read()
            self._broadcaster.publish()
        if changed:
            logger.info(f"Marked {changed} alert(s) as read")
        return changed

    def resolve_alert(self, alert_id: str, resolved_by: str) -> bool:
        """
        Resolve an alert. Only the first resolution is recorded.

        Returns:
            True if this call resolved the alert
        """
        with self.store.lock:
            applied = self.store.resolve(alert_id, resolved_by)
            self._broadcaster.publish()
        return applied

    # Settings

    def get_settings(self) -> AlertSettings:
        return self.settings_store.get()

    def update_settings(self, partial: dict[str, Any]) -> AlertSettings:
        """Merge a partial settings update and persist it."""
        if not isinstance(partial, dict):
            logger.warning(f"Ignoring settings update that is not a mapping: {partial!r}")
            return self.settings_store.get()
        return self.settings_store.update(partial)

    def get_status(self) -> dict:
        """Get service status."""
        return {
            "running": self._running,
            "alerts": len(self.store),
            "subscribers": self._broadcaster.observer_count,
            "scheduled_jobs": [job.name for job in self.ticker.jobs],
            "recent_deliveries": len(self.dispatcher.recent_deliveries()),
        }
