"""Device handler package: status reporting, channel model and the handler."""

from midea_ac_lan.handler.status import StatusInfo, StatusReporter, ThingStatus, ThingStatusDetail

__all__ = [
    "StatusInfo",
    "StatusReporter",
    "ThingStatus",
    "ThingStatusDetail",
]
