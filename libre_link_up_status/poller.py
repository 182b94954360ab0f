"""Timer-driven status updates"""

import logging
import threading
from typing import Callable, Optional

from .config import DEFAULT_UPDATE_INTERVAL, LinkUpConfig, load_config
from .display import format_timestamp, present
from .exceptions import ConfigurationError
from .session_manager import SessionManager
from .types import PLACEHOLDER, DisplayState, GlucoseMeasurement

logger = logging.getLogger(__name__)


class StatusPoller:
    """
    Runs the fetch pipeline once per tick and keeps the latest display state

    Only one tick runs at a time. The next tick is armed after the current one
    has finished, so a cycle lasts processing time plus the configured
    interval.
    """

    def __init__(
        self,
        manager: SessionManager,
        config_loader: Callable[[], LinkUpConfig] = load_config,
        on_update: Optional[Callable[[DisplayState], None]] = None,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        self.manager = manager
        self.config_loader = config_loader
        self.on_update = on_update
        self.timer_factory = timer_factory

        self.state: DisplayState = PLACEHOLDER
        self.measurement: Optional[GlucoseMeasurement] = None
        self.last_notification: Optional[str] = None
        self.interval_minutes: Optional[float] = None

        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._timer: Optional[threading.Timer] = None
        self._timer_lock = threading.Lock()

    def tick(self) -> DisplayState:
        """Run one update; never raises for remote or configuration failures"""
        with self._lock:
            self.last_notification = None
            try:
                config = self.config_loader()
            except ConfigurationError as e:
                logger.error(f"Configuration error: {e}")
                self.last_notification = f"LibreLinkUp configuration error: {e}"
                self._apply(None, PLACEHOLDER)
                return self.state

            self.interval_minutes = config.update_interval
            result = self.manager.fetch_latest_reading(config)
            if self._stop_event.is_set():
                logger.debug("Poller stopped while fetching, dropping result")
                return self.state
            self.last_notification = result.notification
            self._apply(result.measurement, present(result.measurement, config))
            return self.state

    def _apply(self, measurement: Optional[GlucoseMeasurement], state: DisplayState) -> None:
        self.measurement = measurement
        self.state = state
        if state.warning:
            logger.warning(state.warning)
        if self.on_update:
            self.on_update(state)

    def _run_and_reschedule(self) -> None:
        try:
            self.tick()
        except Exception as e:
            logger.error(f"Unexpected error during status update: {e}", exc_info=True)
        finally:
            self._schedule()

    def _schedule(self, delay: Optional[float] = None) -> None:
        with self._timer_lock:
            if self._stop_event.is_set():
                return
            if self._timer is not None:
                self._timer.cancel()
            if delay is None:
                delay = (self.interval_minutes or DEFAULT_UPDATE_INTERVAL) * 60
            self._timer = self.timer_factory(delay, self._run_and_reschedule)
            self._timer.daemon = True
            self._timer.start()

    def start(self) -> None:
        """Arm the first update right away and keep updating until :meth:`stop`

        The first update runs on the timer thread, so this returns at once.
        """
        logger.info("Starting LibreLinkUp status poller")
        self._stop_event.clear()
        self._schedule(delay=0)

    def refresh(self) -> DisplayState:
        """Update immediately and restart the interval"""
        if self._stop_event.is_set():
            return self.state
        try:
            return self.tick()
        finally:
            self._schedule()

    def stop(self) -> None:
        """Cancel the pending update; a tick in flight is discarded"""
        self._stop_event.set()
        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        logger.info("LibreLinkUp status poller stopped")

    def last_reading_message(self) -> str:
        if self.measurement is not None and self.measurement.value_in_mg_per_dl > 0:
            return f"LibreLinkUp CGM last entry at: {format_timestamp(self.measurement.timestamp)}"
        return "No data available."
