from fastapi import HTTPException, status

from showroom.services.errors import (
    AlreadyPaid,
    BrokerNotFound,
    CarAlreadySold,
    CarNotFound,
    CommissionLedgerError,
    CommissionNotFound,
    Forbidden,
)


def to_http_exception(exc: CommissionLedgerError) -> HTTPException:
    """Translate a ledger error into the HTTP error returned to the caller."""
    if isinstance(exc, Forbidden):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    if isinstance(exc, CarNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Car not found")
    if isinstance(exc, BrokerNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Broker not found")
    if isinstance(exc, CommissionNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Commission not found")
    if isinstance(exc, AlreadyPaid):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Commission already paid, already processed",
        )
    if isinstance(exc, CarAlreadySold):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Car is already sold")
    # PersistenceError and anything else from the ledger: store unavailable
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Commission ledger temporarily unavailable, please retry",
    )
