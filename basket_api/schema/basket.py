import enum
import uuid
from datetime import datetime
from typing import Any, Dict, Optional
from uuid6 import uuid7
from sqlalchemy import DateTime, Float, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID,JSONB
from sqlmodel import Column, SQLModel, Field, String
from basket_api.common.utils import now


class BasketStatus(str, enum.Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class FrequencyType(str, enum.Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    CUSTOM = "custom"
    BUY_ONCE = "buy_once"


# one row per (user, product) , re-adding a product overwrites the row in place
class BasketItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(
        default_factory=uuid7,
        sa_column=Column(UUID(as_uuid=True), unique=True, index=True, nullable=False)
    )
    user_id: str = Field(sa_column=Column(String(128), index=True, nullable=False))
    email: str = Field(sa_column=Column(String(320), index=True, nullable=False))
    product_id: str = Field(sa_column=Column(String(128), index=True, nullable=False))

    # display snapshot at add time
    title: Optional[str] = Field(default=None, sa_column=Column(String(512), nullable=True))
    image: Optional[str] = Field(default=None, sa_column=Column(String(1024), nullable=True))

    quantity: int = Field(default=1, nullable=False)
    source: str = Field(sa_column=Column(String(32), nullable=False))   # amazon_in | amazon_us | woocommerce
    affiliate_url: str = Field(sa_column=Column(String(2048), nullable=False))
    price_at_add: float = Field(sa_column=Column(Float, nullable=False))
    currency: str = Field(default="INR", sa_column=Column(String(8), nullable=False, default="INR"))

    frequency: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSONB, nullable=False))
    frequency_type: str = Field(sa_column=Column(String(16), index=True, nullable=False))
    next_due_at: datetime = Field(sa_column=Column(DateTime(timezone=True), index=True, nullable=False))
    status: str = Field(default=BasketStatus.ACTIVE.value,
        sa_column=Column(String(16), index=True, nullable=False, default=BasketStatus.ACTIVE.value))

    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now))
    updated_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))

    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_basketitem_user_id_product_id"),
        Index("ix_basketitem_status_next_due_at", "status", "next_due_at"),
    )


# singleton row (id=1) , advanced atomically on every quick buy checkout
class WishlistRotation(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    current_index: int = Field(default=0, nullable=False)
    last_used_at: Optional[datetime] = Field(default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True))
    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now))
