"""External payment status as reported by the gateway.

Gateways report free-form status strings. They are parsed exactly once, here,
into a tagged variant; everything downstream matches on ``kind`` and never on
raw strings. Values the gateway may add in the future land in UNRECOGNIZED.
"""

from dataclasses import dataclass
from enum import Enum


class ExternalStatusKind(Enum):
    SUCCEEDED = "succeeded"
    PROCESSING = "processing"
    REQUIRES_PAYMENT_METHOD = "requires_payment_method"
    FAILED = "failed"
    CANCELED = "canceled"
    UNRECOGNIZED = "unrecognized"


_KNOWN = {kind.value: kind for kind in ExternalStatusKind if kind is not ExternalStatusKind.UNRECOGNIZED}


@dataclass(frozen=True)
class ExternalStatus:
    kind: ExternalStatusKind
    raw: str

    @classmethod
    def parse(cls, raw: str | None) -> "ExternalStatus":
        value = (raw or "").strip()
        return cls(kind=_KNOWN.get(value.lower(), ExternalStatusKind.UNRECOGNIZED), raw=value)

    @property
    def is_recognized(self) -> bool:
        return self.kind is not ExternalStatusKind.UNRECOGNIZED

    def __str__(self) -> str:
        return self.raw
