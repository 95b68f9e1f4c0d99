"""Delivery of background failures to session owners."""

from __future__ import annotations

from typing import Callable

from loguru import logger

from streampanel.schemas import SessionNotice
from streampanel.shared.log import format_error
from streampanel.utils.app_errors import AppError

NoticeListener = Callable[[SessionNotice], None]


class SessionNotifier:
    """Fan-out of `SessionNotice`s to registered listeners.

    Used for failures that happen outside a direct call (acquisition timeout,
    fatal playback error). Failures of direct calls are raised instead.
    """

    def __init__(self) -> None:
        self._listeners: list[NoticeListener] = []

    def subscribe(self, listener: NoticeListener) -> Callable[[], None]:
        """Register a listener, returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, session_id: str, error: AppError) -> SessionNotice:
        notice = SessionNotice(
            session_id=session_id,
            errcode=str(error.errcode),
            errmesg=error.errmesg,
            status_code=error.status_code,
            erresid=error.erresid,
        )
        logger.warning(
            f"{notice.errcode} {notice.erresid} session={session_id} "
            f"msg={notice.errmesg} caller={error.caller_info}"
        )
        if error.__traceback__ is not None:
            logger.debug(f"{notice.erresid} traceback:\n{format_error(error)}")
        if not self._listeners:
            logger.warning(f"No listener registered for notices of session {session_id}")
        for listener in list(self._listeners):
            try:
                listener(notice)
            except Exception:
                logger.exception(f"Notice listener failed for {notice.erresid}")
        return notice
