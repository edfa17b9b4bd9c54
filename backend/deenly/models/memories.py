from pydantic import BaseModel
from datetime import datetime


class MemoryCreate(BaseModel):
    content: str


class MemoryResponse(BaseModel):
    id: str
    content: str
    created_at: datetime
