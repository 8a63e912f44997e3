"""Fire-and-forget delivery of credentialing alert notifications."""
from typing import Callable, Optional
import asyncio
import threading

from app.utils.logger import get_logger

logger = get_logger(__name__)

# send_alert(provider_id, alert_type, message, severity, action_required) -> delivered
SendAlert = Callable[[int, str, str, str, Optional[str]], bool]

# Global event loop and thread for synchronous contexts
_sync_event_loop = None
_sync_thread = None
_loop_lock = threading.Lock()

# Strong references to in-flight tasks on a running loop
_pending_tasks = set()


def _start_background_loop(loop: asyncio.AbstractEventLoop):
    """Start an event loop in a background thread."""
    asyncio.set_event_loop(loop)
    loop.run_forever()


def get_sync_event_loop():
    """Get or create a shared event loop for synchronous contexts."""
    global _sync_event_loop, _sync_thread

    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        pass

    with _loop_lock:
        if _sync_event_loop is None or not _sync_event_loop.is_running():
            if _sync_event_loop is None:
                _sync_event_loop = asyncio.new_event_loop()
            _sync_thread = threading.Thread(
                target=_start_background_loop,
                args=(_sync_event_loop,),
                daemon=True,
                name="AlertNotificationLoop",
            )
            _sync_thread.start()

    return _sync_event_loop


def _run_sync(coro):
    """
    Schedule a coroutine without waiting for it.

    From an async context the coroutine is added to the running loop; from a
    sync context (Celery workers, request threads) it goes to a shared
    background-thread loop.
    """
    if not asyncio.iscoroutine(coro):
        logger.error("Attempted to run a non-coroutine", coro=coro)
        return

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        loop = get_sync_event_loop()
        asyncio.run_coroutine_threadsafe(coro, loop)
    else:
        task = asyncio.create_task(coro)
        _pending_tasks.add(task)
        task.add_done_callback(_pending_tasks.discard)


def log_alert(
    provider_id: int,
    alert_type: str,
    message: str,
    severity: str,
    action_required: Optional[str] = None,
) -> bool:
    """Default delivery: write the notification to the structured log."""
    logger.info(
        "Credentialing notification",
        provider_id=provider_id,
        alert_type=alert_type,
        severity=severity,
        message=message,
        action_required=action_required,
    )
    return True


class AlertNotifier:
    """
    Wraps a send_alert callable so delivery never blocks or breaks the caller.

    notify() returns immediately; delivery runs on an event loop and its
    outcome is only logged. send() runs inline and reports the outcome.
    Neither raises.

    Args:
        send_alert: Delivery callable (email, SMS, in-app); defaults to log_alert
        background: Deliver notify() calls off-thread. Tests pass False to
            deliver inline.
    """

    def __init__(self, send_alert: Optional[SendAlert] = None, background: bool = True):
        self._send_alert = send_alert or log_alert
        self.background = background

    def send(
        self,
        provider_id: int,
        alert_type: str,
        message: str,
        severity: str,
        action_required: Optional[str] = None,
    ) -> bool:
        """Deliver one notification; returns False instead of raising on failure."""
        try:
            delivered = bool(
                self._send_alert(provider_id, alert_type, message, severity, action_required)
            )
        except Exception as e:
            logger.warning(
                "Failed to send notification",
                provider_id=provider_id,
                alert_type=alert_type,
                error=str(e),
            )
            return False

        if not delivered:
            logger.warning(
                "Notification not delivered",
                provider_id=provider_id,
                alert_type=alert_type,
            )
        return delivered

    def notify(
        self,
        provider_id: int,
        alert_type: str,
        message: str,
        severity: str,
        action_required: Optional[str] = None,
    ) -> None:
        """Dispatch a notification without waiting for delivery."""
        if not self.background:
            self.send(provider_id, alert_type, message, severity, action_required)
            return
        _run_sync(self._deliver(provider_id, alert_type, message, severity, action_required))

    async def _deliver(self, provider_id, alert_type, message, severity, action_required):
        await asyncio.to_thread(
            self.send, provider_id, alert_type, message, severity, action_required
        )
