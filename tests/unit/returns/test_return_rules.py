"""
Return Rules Unit Tests

Status transitions and the tracking-to-status mapping.

Usage:
    pytest tests/unit/returns/test_return_rules.py -v
"""
import pytest

from microservices.return_service.models import ReturnStatus, ReverseTrackingStatus
from microservices.return_service.return_service import can_transition, status_from_tracking

pytestmark = [pytest.mark.unit]


class TestCanTransition:
    """can_transition()"""

    @pytest.mark.parametrize("current,target", [
        (ReturnStatus.PENDING, ReturnStatus.APPROVED),
        (ReturnStatus.PENDING, ReturnStatus.REJECTED),
        (ReturnStatus.APPROVED, ReturnStatus.PROCESSING),
        (ReturnStatus.PROCESSING, ReturnStatus.COMPLETED),
    ])
    def test_allowed(self, current, target):
        assert can_transition(current, target) is True

    @pytest.mark.parametrize("current,target", [
        (ReturnStatus.PENDING, ReturnStatus.COMPLETED),
        (ReturnStatus.PENDING, ReturnStatus.PROCESSING),
        (ReturnStatus.APPROVED, ReturnStatus.PENDING),
        (ReturnStatus.PROCESSING, ReturnStatus.APPROVED),
        (ReturnStatus.COMPLETED, ReturnStatus.PROCESSING),
        (ReturnStatus.REJECTED, ReturnStatus.APPROVED),
    ])
    def test_refused(self, current, target):
        assert can_transition(current, target) is False

    def test_terminal_states_have_no_exits(self):
        for target in ReturnStatus:
            assert can_transition(ReturnStatus.REJECTED, target) is False
            assert can_transition(ReturnStatus.COMPLETED, target) is False


class TestStatusFromTracking:
    """status_from_tracking()"""

    @pytest.mark.parametrize("current,tracking,expected", [
        (ReturnStatus.APPROVED, ReverseTrackingStatus.PICKED_UP, ReturnStatus.PROCESSING),
        (ReturnStatus.APPROVED, ReverseTrackingStatus.DELIVERED_TO_WAREHOUSE, ReturnStatus.PROCESSING),
        (ReturnStatus.PROCESSING, ReverseTrackingStatus.PROCESSED, ReturnStatus.COMPLETED),
        (ReturnStatus.APPROVED, ReverseTrackingStatus.PROCESSED, ReturnStatus.COMPLETED),
    ])
    def test_moves_forward(self, current, tracking, expected):
        assert status_from_tracking(current, tracking) == expected

    def test_same_status_is_no_change(self):
        assert status_from_tracking(ReturnStatus.PROCESSING, ReverseTrackingStatus.PICKED_UP) is None

    def test_never_moves_backward(self):
        assert status_from_tracking(ReturnStatus.COMPLETED, ReverseTrackingStatus.PICKED_UP) is None

    @pytest.mark.parametrize("tracking", [ReverseTrackingStatus.SCHEDULED, ReverseTrackingStatus.CANCELLED])
    def test_unmapped_tracking_status(self, tracking):
        assert status_from_tracking(ReturnStatus.PROCESSING, tracking) is None

    def test_rejected_return_is_left_alone(self):
        assert status_from_tracking(ReturnStatus.REJECTED, ReverseTrackingStatus.PROCESSED) is None
