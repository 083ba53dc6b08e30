from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class Coupon(SQLModel, table=True):
    code: str = Field(primary_key=True)
    description: str = ""
    discount: float  # percent of subtotal

    for_new_user: bool = False
    for_member: bool = False

    expires_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    def snapshot(self) -> dict:
        """Denormalized copy stored on every order that used the coupon."""
        return {
            "code": self.code,
            "description": self.description,
            "discount": self.discount,
            "forNewUser": self.for_new_user,
            "forMember": self.for_member,
        }
