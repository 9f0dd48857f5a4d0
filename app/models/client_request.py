from datetime import datetime

from sqlalchemy import DateTime, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base
from app.models.common import UUIDMixin, TimestampMixin

class ClientRequest(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "client_requests"
    client_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    lawyer_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    request_type: Mapped[str] = mapped_column(String(30), nullable=False, default="consultation")  # consultation|new_case|second_opinion|urgent
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    case_category: Mapped[str | None] = mapped_column(String(120), nullable=True)
    urgency: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")  # low|medium|high|urgent
    budget_min: Mapped[float | None] = mapped_column(Numeric(12, 2), nullable=True)
    budget_max: Mapped[float | None] = mapped_column(Numeric(12, 2), nullable=True)
    preferred_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True, default="pending")
