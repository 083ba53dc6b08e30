from typing import Dict, List, Sequence

from app.models.order import Order, OrderStatus


def summarize_orders(orders: Sequence[Order]) -> dict:
    """Financial summary over paid orders, shown on the master dashboard."""
    total_revenue = sum(o.total for o in orders)
    delivered = [o for o in orders if o.status == OrderStatus.DELIVERED]
    processing = [
        o for o in orders
        if o.status in (OrderStatus.PROCESSING, OrderStatus.ORDER_PLACED)
    ]
    shipped = [o for o in orders if o.status == OrderStatus.SHIPPED]

    return {
        "totalOrders": len(orders),
        "totalRevenue": round(total_revenue, 2),
        "totalSubtotal": round(sum(o.subtotal or 0 for o in orders), 2),
        "totalGst": round(sum(o.gst_amount or 0 for o in orders), 2),
        "totalShipping": round(sum(o.shipping_charge or 0 for o in orders), 2),
        "deliveredOrders": len(delivered),
        "deliveredRevenue": round(sum(o.total for o in delivered), 2),
        "processingOrders": len(processing),
        "shippedOrders": len(shipped),
        "averageOrderValue": round(total_revenue / len(orders), 2) if orders else 0,
    }


def vendor_breakdown(orders: Sequence[Order], stores: Dict[str, dict]) -> List[dict]:
    breakdown: Dict[str, dict] = {}
    for order in orders:
        entry = breakdown.setdefault(order.store_id, {
            "store": stores.get(order.store_id),
            "totalOrders": 0,
            "totalRevenue": 0.0,
            "gstCollected": 0.0,
            "deliveredOrders": 0,
        })
        entry["totalOrders"] += 1
        entry["totalRevenue"] = round(entry["totalRevenue"] + order.total, 2)
        entry["gstCollected"] = round(entry["gstCollected"] + (order.gst_amount or 0), 2)
        if order.status == OrderStatus.DELIVERED:
            entry["deliveredOrders"] += 1
    return list(breakdown.values())
