"""Prometheus metrics for commission ledger observability."""

from prometheus_client import Counter

# Commission record lifecycle
COMMISSION_RECONCILIATIONS = Counter(
    "showroom_commission_reconciliations_total",
    "Commission reconciliations by outcome",
    ["action"],
)
COMMISSIONS_PAID = Counter(
    "showroom_commissions_paid_total",
    "Total commissions marked paid",
)
COMMISSION_PAY_REJECTIONS = Counter(
    "showroom_commission_pay_rejections_total",
    "Mark-paid calls that changed nothing",
    ["reason"],
)

# Broker aggregate maintenance
BROKER_TOTALS_REPAIRS = Counter(
    "showroom_broker_totals_repairs_total",
    "Brokers whose stored totals were corrected by a repair run",
)

# Sales
PAYMENTS_RECORDED = Counter(
    "showroom_payments_recorded_total",
    "Total customer payments recorded",
    ["payment_type"],
)
