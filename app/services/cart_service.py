from sqlmodel import Session, select
from app.models.cart import CartItem


def clear_cart(session: Session, user_id: str, commit: bool = True) -> int:
    items = session.exec(
        select(CartItem).where(CartItem.user_id == user_id)
    ).all()

    for item in items:
        session.delete(item)

    if commit:
        session.commit()

    return len(items)
