# -------- MASTER VENDOR --------
from datetime import date, datetime, time
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select
from app.database import get_session
from app.dependencies.admin import require_master_vendor
from app.models.order import Order, OrderStatus, PaymentMethod
from app.models.product import Product
from app.models.store import Store
from app.routes.orders import serialize_order
from app.schemas.orders_schemas import OrderStatusUpdate
from app.schemas.product_schemas import ProductCreate
from app.services.access_policy import AccessPolicy, Role, get_access_policy
from app.services.order_event_service import order_timeline
from app.services.order_status_service import update_order_status
from app.services.order_summary_service import summarize_orders, vendor_breakdown
from app.utils.token import Identity, get_current_identity


router = APIRouter()


def _store_info(store: Store) -> dict:
    return {"id": store.id, "name": store.name, "username": store.username, "logo": store.logo}


def _with_items(session: Session, orders):
    stores = {}
    results = []
    for order in orders:
        if order.store_id not in stores:
            stores[order.store_id] = session.get(Store, order.store_id)
        results.append(serialize_order(order, stores[order.store_id]))
    return results


@router.get("/is-master")
def is_master(
    identity: Identity = Depends(get_current_identity),
    policy: AccessPolicy = Depends(get_access_policy),
):
    return {
        "isMaster": policy.is_privileged(identity) == Role.MASTER_VENDOR,
        "email": identity.email,
    }


# Orders of one store

@router.get("/orders")
def list_store_orders(
    store_id: str = Query(..., alias="storeId"),
    session: Session = Depends(get_session),
    _: Identity = Depends(require_master_vendor),
):
    orders = session.exec(
        select(Order)
        .where(Order.store_id == store_id)
        .order_by(Order.created_at.desc())
    ).all()

    return {"orders": _with_items(session, orders)}


@router.put("/orders")
def change_order_status(
    data: OrderStatusUpdate,
    session: Session = Depends(get_session),
    identity: Identity = Depends(require_master_vendor),
):
    order = update_order_status(
        session, data.order_id, data.status, changed_by=identity.email or identity.user_id
    )
    return {
        "message": "Order status updated successfully",
        "orderId": order.id,
        "status": order.status,
        "isPaid": order.is_paid,
    }


# Audit timeline of one order

@router.get("/orders/{order_id}/events")
def list_order_events(
    order_id: str,
    session: Session = Depends(get_session),
    _: Identity = Depends(require_master_vendor),
):
    if not session.get(Order, order_id):
        raise HTTPException(404, "Order not found")

    return {
        "orderId": order_id,
        "events": [
            {
                "type": e.event_type,
                "label": e.label,
                "meta": e.meta,
                "createdBy": e.created_by,
                "createdAt": e.created_at,
            }
            for e in order_timeline(session, order_id)
        ],
    }


# All paid orders across vendors, with financial summary

@router.get("/all-orders")
def list_all_orders(
    store_id: str | None = Query(None, alias="storeId"),
    status: OrderStatus | None = None,
    payment_method: PaymentMethod | None = Query(None, alias="paymentMethod"),
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    session: Session = Depends(get_session),
    _: Identity = Depends(require_master_vendor),
):
    query = select(Order).where(Order.is_paid == True)  # noqa: E712

    if store_id:
        query = query.where(Order.store_id == store_id)

    if status:
        query = query.where(Order.status == status)

    if payment_method:
        query = query.where(Order.payment_method == payment_method)

    if start_date:
        query = query.where(Order.created_at >= datetime.combine(start_date, time.min))

    if end_date:
        # inclusive of the whole end day
        query = query.where(Order.created_at <= datetime.combine(end_date, time.max))

    orders = session.exec(query.order_by(Order.created_at.desc())).all()

    stores = session.exec(select(Store).where(Store.status == "approved")).all()
    store_map = {s.id: _store_info(s) for s in stores}

    return {
        "orders": _with_items(session, orders),
        "stores": list(store_map.values()),
        "financials": summarize_orders(orders),
        "vendorBreakdown": vendor_breakdown(orders, store_map),
    }


# Add product on behalf of a store

@router.post("/products", status_code=201)
def create_product(
    data: ProductCreate,
    session: Session = Depends(get_session),
    _: Identity = Depends(require_master_vendor),
):
    store = session.get(Store, data.store_id)
    if not store:
        raise HTTPException(404, "Store not found")

    base = data.base_size
    product = Product(
        store_id=store.id,
        name=data.name,
        description=data.description,
        category=data.category,
        mrp=base.mrp,
        price=base.price,
        gst=data.gst,
        colors=data.colors,
        sizes=data.sizes,
        variants=[v.model_dump(by_alias=True) for v in data.variants],
    )
    session.add(product)
    session.commit()
    session.refresh(product)

    return {"message": "Product added successfully", "productId": product.id, "price": product.price}
