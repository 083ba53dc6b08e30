from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from uuid import uuid4

class Address(SQLModel, table=True):
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str = Field(foreign_key="user.id", index=True)
    name: str
    email: Optional[str] = None
    street: str
    city: str
    state: str
    zip_code: str
    country: str = "India"
    phone: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
