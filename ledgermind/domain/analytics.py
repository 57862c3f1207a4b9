"""Aggregation engine - rolls flat transaction lists up into daily, monthly and product views"""

from dataclasses import dataclass
from typing import Dict, List
from ledgermind.domain.models import (
    Transaction,
    DailyRevenue,
    MonthlyRevenue,
    ProductPerformance,
    Totals,
    RevenueConcentration,
)
from ledgermind.utils.date_utils import to_day, month_key
from ledgermind.utils.rounding import round_money, round_ratio


@dataclass
class Aggregation:
    """Output of aggregate(): every rollup the downstream components consume"""

    daily: List[DailyRevenue]
    monthly: List[MonthlyRevenue]
    products: List[ProductPerformance]
    totals: Totals


def _margin(revenue: float, cost: float) -> float:
    return (revenue - cost) / revenue if revenue > 0 else 0.0


def calculate_daily_revenue(transactions: List[Transaction]) -> List[DailyRevenue]:
    """
    Sum revenue and cost per calendar day.

    Only dates present in the input produce an entry (no zero-filling).
    Sorted ascending by date.
    """
    daily: Dict[str, List[float]] = {}
    for txn in transactions:
        key = to_day(txn.date).isoformat()
        bucket = daily.setdefault(key, [0.0, 0.0])
        bucket[0] += txn.revenue
        bucket[1] += txn.cost

    return [
        DailyRevenue(
            date=day,
            revenue=round_money(revenue),
            cost=round_money(cost),
            profit=round_money(revenue - cost),
        )
        for day, (revenue, cost) in sorted(daily.items())
    ]


def calculate_monthly_revenue(transactions: List[Transaction]) -> List[MonthlyRevenue]:
    """Sum revenue and cost per calendar month, sorted ascending by YYYY-MM"""
    monthly: Dict[str, List[float]] = {}
    for txn in transactions:
        bucket = monthly.setdefault(month_key(txn.date), [0.0, 0.0])
        bucket[0] += txn.revenue
        bucket[1] += txn.cost

    return [
        MonthlyRevenue(
            month=month,
            revenue=round_money(revenue),
            cost=round_money(cost),
            profit=round_money(revenue - cost),
            profit_margin=round_ratio(_margin(revenue, cost)),
        )
        for month, (revenue, cost) in sorted(monthly.items())
    ]


def calculate_product_performance(transactions: List[Transaction]) -> List[ProductPerformance]:
    """
    Per-product rollup keyed on the exact product name (case-sensitive).

    Sorted descending by total revenue; ties keep first-seen order.
    """
    by_product: Dict[str, Dict[str, float]] = {}
    for txn in transactions:
        stats = by_product.setdefault(
            txn.product_name,
            {"revenue": 0.0, "cost": 0.0, "quantity": 0.0, "count": 0},
        )
        stats["revenue"] += txn.revenue
        stats["cost"] += txn.cost
        stats["quantity"] += txn.quantity
        stats["count"] += 1

    products = [
        ProductPerformance(
            product_name=name,
            total_revenue=round_money(stats["revenue"]),
            total_cost=round_money(stats["cost"]),
            total_profit=round_money(stats["revenue"] - stats["cost"]),
            profit_margin=round_ratio(_margin(stats["revenue"], stats["cost"])),
            quantity=round_money(stats["quantity"]),
            transaction_count=int(stats["count"]),
        )
        for name, stats in by_product.items()
    ]

    # sorted() is stable with reverse=True, so equal revenues keep encounter order
    return sorted(products, key=lambda p: p.total_revenue, reverse=True)


def get_top_products(products: List[ProductPerformance], count: int = 5) -> List[ProductPerformance]:
    """First N of the revenue-sorted list"""
    return products[:count]


def get_bottom_products(products: List[ProductPerformance], count: int = 5) -> List[ProductPerformance]:
    """N least profitable products"""
    return sorted(products, key=lambda p: p.total_profit)[:count]


def calculate_totals(transactions: List[Transaction]) -> Totals:
    revenue = sum(t.revenue for t in transactions)
    cost = sum(t.cost for t in transactions)

    return Totals(
        total_revenue=round_money(revenue),
        total_cost=round_money(cost),
        total_profit=round_money(revenue - cost),
        profit_margin=round_ratio(_margin(revenue, cost)),
    )


def calculate_revenue_concentration(products: List[ProductPerformance]) -> RevenueConcentration:
    """
    Revenue share held by the leading product and the top three.

    Expects products sorted by revenue (as calculate_product_performance returns them).
    Zero total revenue counts as perfectly diversified.
    """
    total_revenue = sum(p.total_revenue for p in products)
    if not products or total_revenue <= 0:
        return RevenueConcentration(top_product_share=0.0, top3_product_share=0.0, diversification_score=1.0)

    top_share = round_ratio(products[0].total_revenue / total_revenue)
    top3_share = round_ratio(sum(p.total_revenue for p in products[:3]) / total_revenue)

    return RevenueConcentration(
        top_product_share=top_share,
        top3_product_share=top3_share,
        diversification_score=round_ratio(1 - top3_share),
    )


def calculate_growth_rate(monthly_revenue: List[MonthlyRevenue]) -> float:
    """
    Total-period growth from the first to the last month.

    0 with fewer than two months or a zero-revenue first month.
    """
    if len(monthly_revenue) < 2:
        return 0.0

    ordered = sorted(monthly_revenue, key=lambda m: m.month)
    first, last = ordered[0], ordered[-1]
    if first.revenue == 0:
        return 0.0

    return round_ratio((last.revenue - first.revenue) / first.revenue)


def aggregate(transactions: List[Transaction]) -> Aggregation:
    """Main entry point: all rollups for a transaction list"""
    return Aggregation(
        daily=calculate_daily_revenue(transactions),
        monthly=calculate_monthly_revenue(transactions),
        products=calculate_product_performance(transactions),
        totals=calculate_totals(transactions),
    )
