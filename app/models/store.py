from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from uuid import uuid4


class Store(SQLModel, table=True):
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: Optional[str] = Field(default=None, foreign_key="user.id")

    name: str
    username: str = Field(index=True)
    email: Optional[str] = None
    logo: Optional[str] = None

    status: str = Field(default="pending")  # pending | approved | rejected
    is_active: bool = Field(default=False)

    created_at: datetime = Field(default_factory=datetime.utcnow)
