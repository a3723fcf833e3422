from typing import NoReturn

from fastapi import HTTPException, status

from src.core.cash import FxTradeTransitionError
from src.core.oms import OrderNotFoundError
from src.core.recon import BreakNotFoundError, BreakTransitionError

HTTP_422_UNPROCESSABLE = getattr(
    status,
    "HTTP_422_UNPROCESSABLE_CONTENT",
    status.HTTP_422_UNPROCESSABLE_ENTITY,
)


def raise_domain_http_exception(exc: Exception) -> NoReturn:
    if isinstance(exc, (BreakNotFoundError, OrderNotFoundError)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, (BreakTransitionError, FxTradeTransitionError)):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    raise exc
