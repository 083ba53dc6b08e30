from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class User(SQLModel, table=True):
    # id comes from the auth provider
    id: str = Field(primary_key=True)
    name: str = Field(default="User")
    email: str = Field(default="", index=True)
    image: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
