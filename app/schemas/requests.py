from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

RequestType = Literal["consultation", "new_case", "second_opinion", "urgent"]


class ClientRequestCreate(BaseModel):
    client_id: Optional[str] = None
    lawyer_id: Optional[str] = None
    request_type: RequestType = "consultation"
    title: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    case_category: Optional[str] = Field(default=None, max_length=120)
    urgency: Optional[str] = None
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    preferred_date: Optional[datetime] = None


class ClientRequestPatch(BaseModel):
    lawyer_id: Optional[str] = None
    request_type: Optional[RequestType] = None
    title: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    case_category: Optional[str] = Field(default=None, max_length=120)
    urgency: Optional[str] = None
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    preferred_date: Optional[datetime] = None


class ClientRequestRead(BaseModel):
    id: str
    client_id: str
    lawyer_id: Optional[str] = None
    request_type: str
    title: str
    description: Optional[str] = None
    case_category: Optional[str] = None
    urgency: str
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    preferred_date: Optional[str] = None
    status: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    lawyer_name: Optional[str] = None
    lawyer_email: Optional[str] = None


class ClientRequestPage(BaseModel):
    rows: List[ClientRequestRead]
    total: int
    limit: int
    offset: int
    page: int
    total_pages: int


class ClientRequestStats(BaseModel):
    total: int = 0
    pending: int = 0
    accepted: int = 0
    rejected: int = 0
    cancelled: int = 0

