"""Tests for parsing gateway-reported statuses."""

import pytest
from storefront.gateway.status import ExternalStatus, ExternalStatusKind


@pytest.mark.parametrize(
    "raw,kind",
    [
        ("succeeded", ExternalStatusKind.SUCCEEDED),
        ("processing", ExternalStatusKind.PROCESSING),
        ("requires_payment_method", ExternalStatusKind.REQUIRES_PAYMENT_METHOD),
        ("failed", ExternalStatusKind.FAILED),
        ("canceled", ExternalStatusKind.CANCELED),
        (" Succeeded ", ExternalStatusKind.SUCCEEDED),
    ],
)
def test_known_statuses(raw, kind):
    status = ExternalStatus.parse(raw)
    assert status.kind is kind
    assert status.is_recognized


@pytest.mark.parametrize("raw", ["requires_capture", "cancelled", "", None, "unrecognized"])
def test_unknown_statuses_fall_back(raw):
    status = ExternalStatus.parse(raw)
    assert status.kind is ExternalStatusKind.UNRECOGNIZED
    assert not status.is_recognized


def test_raw_value_is_kept():
    status = ExternalStatus.parse("requires_action")
    assert status.raw == "requires_action"
    assert str(status) == "requires_action"
