import logging
import uuid
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Literal, Mapping, Optional

from src.core.common.numeric import ZERO, fx_to_usd
from src.core.models import (
    CashBucket,
    FxExecutionType,
    FxTrade,
    FxTradeSource,
    FxTradeStatus,
    SettlementHorizon,
)

logger = logging.getLogger(__name__)

SettlementType = Literal["ON", "TOM", "SPOT"]

_SETTLEMENT_DAYS = {"ON": 0, "TOM": 1, "SPOT": 2}
_SETTLEMENT_BUCKETS = {
    "ON": SettlementHorizon.T,
    "TOM": SettlementHorizon.T1,
    "SPOT": SettlementHorizon.T2,
}
_VALID_FX_TRANSITIONS = {
    ("Pending", "Settled"),
    ("Pending", "Cancelled"),
}


class FxTradeTransitionError(Exception):
    pass


def new_fx_trade_id() -> str:
    return f"fx_{uuid.uuid4().hex[:8]}"


def settle_date_from_type(trade_date: date, settlement_type: SettlementType) -> date:
    return trade_date + timedelta(days=_SETTLEMENT_DAYS[settlement_type])


def book_fx_trade(
    *,
    sell_ccy: str,
    buy_ccy: str,
    sell_amt: Decimal,
    fx_rates: Mapping[str, Decimal],
    trade_date: date,
    settlement_type: SettlementType = "SPOT",
    execution_type: FxExecutionType = "SPOT",
    source: FxTradeSource = "Manual",
    trade_id: Optional[str] = None,
) -> FxTrade:
    """
    Books a Pending FX trade, pricing the buy leg through USD cross rates.
    """
    sell_rate = fx_to_usd(fx_rates, sell_ccy)
    buy_rate = fx_to_usd(fx_rates, buy_ccy)
    cross_rate = sell_rate / buy_rate
    return FxTrade(
        trade_id=trade_id or new_fx_trade_id(),
        sell_ccy=sell_ccy,
        buy_ccy=buy_ccy,
        sell_amt=sell_amt,
        buy_amt=sell_amt * cross_rate,
        fx_rate=cross_rate,
        trade_date=trade_date,
        settle_date=settle_date_from_type(trade_date, settlement_type),
        execution_type=execution_type,
        settlement_bucket=_SETTLEMENT_BUCKETS[settlement_type],
        status="Pending",
        source=source,
    )


def build_spot_to_base_trades(
    buckets: Iterable[CashBucket],
    fx_rates: Mapping[str, Decimal],
    trade_date: date,
    base_currency: str = "USD",
) -> List[FxTrade]:
    trades: List[FxTrade] = []
    for bucket in buckets:
        if bucket.currency == base_currency or bucket.total <= ZERO:
            continue
        rate = fx_to_usd(fx_rates, bucket.currency)
        trades.append(
            FxTrade(
                trade_id=new_fx_trade_id(),
                sell_ccy=bucket.currency,
                buy_ccy=base_currency,
                sell_amt=bucket.total,
                buy_amt=bucket.total * rate,
                fx_rate=rate,
                trade_date=trade_date,
                settle_date=settle_date_from_type(trade_date, "SPOT"),
                execution_type="SPOT",
                settlement_bucket=SettlementHorizon.T2,
                status="Pending",
                source="SpotToBase",
            )
        )
    logger.info("Generated %d spot-to-base FX trades", len(trades))
    return trades


def transition_fx_trade(trade: FxTrade, status: FxTradeStatus) -> FxTrade:
    if (trade.status, status) not in _VALID_FX_TRANSITIONS:
        raise FxTradeTransitionError(
            f"FX_TRADE_INVALID_TRANSITION: {trade.status} -> {status} ({trade.trade_id})"
        )
    return trade.model_copy(update={"status": status})
