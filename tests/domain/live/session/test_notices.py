"""Tests for SessionNotifier."""

from unittest.mock import MagicMock

from streampanel.utils.app_errors import AcquisitionTimeout, AppErrorCode, BackendRejection


class TestPublish:
    def test_notice_carries_error_fields(self, notifier, notices):
        error = BackendRejection("stop failed", status_code=502)

        notice = notifier.publish("panel-1", error)

        assert notices == [notice]
        assert notice.errcode == str(AppErrorCode.E_BACKEND_REJECTED)
        assert notice.status_code == 502
        assert notice.erresid == error.erresid

    def test_failing_listener_does_not_block_others(self, notifier):
        broken = MagicMock(side_effect=RuntimeError("renderer gone"))
        healthy = MagicMock()
        notifier.subscribe(broken)
        notifier.subscribe(healthy)

        notifier.publish("panel-1", AcquisitionTimeout("no manifest"))

        healthy.assert_called_once()

    def test_unsubscribe(self, notifier):
        listener = MagicMock()
        unsubscribe = notifier.subscribe(listener)

        unsubscribe()
        unsubscribe()
        notifier.publish("panel-1", AcquisitionTimeout("no manifest"))

        listener.assert_not_called()

    def test_publish_without_listeners(self, notifier):
        notice = notifier.publish("panel-1", AcquisitionTimeout("no manifest"))
        assert notice.session_id == "panel-1"
