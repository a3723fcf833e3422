from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, Mapping

from src.core.common.numeric import ZERO, fx_to_usd
from src.core.models import FxExecutionType, FxOrder, RebalanceAllocation, SettlementHorizon

MIN_FX_ORDER_USD = Decimal("100")
FX_SETTLEMENT_DAYS = 2


def generate_fx_orders(
    allocations: List[RebalanceAllocation],
    fx_rates: Mapping[str, Decimal],
    auto_fx: bool,
    execution_type: FxExecutionType,
    trade_date: date,
) -> List[FxOrder]:
    """
    One USD-funded FX order per non-USD currency of buy notional. WMR and SPOT
    both settle T+2.
    """
    if not auto_fx:
        return []

    usd_by_currency: Dict[str, Decimal] = {}
    for allocation in allocations:
        if allocation.side != "Buy" or allocation.currency == "USD":
            continue
        usd_by_currency[allocation.currency] = (
            usd_by_currency.get(allocation.currency, ZERO) + allocation.notional_usd
        )

    settle_date = trade_date + timedelta(days=FX_SETTLEMENT_DAYS)
    orders: List[FxOrder] = []
    for currency, usd_amount in usd_by_currency.items():
        if usd_amount < MIN_FX_ORDER_USD:
            continue
        rate = fx_to_usd(fx_rates, currency)
        orders.append(
            FxOrder(
                sell_ccy="USD",
                buy_ccy=currency,
                sell_amt=usd_amount,
                buy_amt=usd_amount / rate,
                fx_rate=rate,
                trade_date=trade_date,
                settle_date=settle_date,
                execution_type=execution_type,
                settlement_bucket=SettlementHorizon.T2,
                status="Pending",
                source="Rebalance",
            )
        )
    return orders
