"""Commission ledger errors.

These carry no HTTP semantics so that non-HTTP callers (scripts, tests,
other services) get clean exceptions; routers translate them.
"""


class CommissionLedgerError(Exception):
    """Base class for commission ledger failures."""


class InvalidCommissionPolicy(CommissionLedgerError):
    """Commission type/value pair cannot produce a commission.

    Only raised by ``check_commission_policy``. The calculator degrades it to
    a zero commission.
    """


class PersistenceError(CommissionLedgerError):
    """The store could not locate or mutate the records involved."""


class CarNotFound(PersistenceError):
    pass


class BrokerNotFound(PersistenceError):
    pass


class CommissionNotFound(PersistenceError):
    pass


class AlreadyPaid(CommissionLedgerError):
    """The commission was already marked paid. Non-fatal; nothing changed."""

    def __init__(self, commission_id):
        super().__init__(f"Commission {commission_id} is already paid")
        self.commission_id = commission_id


class Forbidden(CommissionLedgerError):
    """Caller lacks the role required for a ledger operation."""


class CarAlreadySold(CommissionLedgerError):
    """A second full purchase for a car that is already sold."""
