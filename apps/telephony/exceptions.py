class TelephonyError(Exception):
    """Base class for number lifecycle and recording pipeline failures."""


class NoInventoryAvailable(TelephonyError):
    pass


class PurchaseRejected(TelephonyError):
    """The carrier declined the purchase (e.g. regulatory bundle missing)."""


class TransientCarrierError(TelephonyError):
    """Network error, rate limit or carrier 5xx. Safe to retry on the next run."""


class EventNotFound(TelephonyError):
    pass


class EventCancelled(TelephonyError):
    pass


class ProvisioningInProgress(TelephonyError):
    """Another worker holds the provisioning lease for this event."""


class RecordingFetchError(TelephonyError):
    pass


class InvalidRecordingCallback(TelephonyError):
    def __init__(self, missing_fields):
        self.missing_fields = list(missing_fields)
        super().__init__('Missing recording callback fields: ' + ', '.join(self.missing_fields))


class NumberNotAssigned(TelephonyError):
    pass
