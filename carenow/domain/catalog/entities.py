from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Optional


def format_vnd(amount: float) -> str:
    """150000 -> '150.000đ'"""
    return f"{amount:,.0f}".replace(",", ".") + "đ"


@dataclass
class Service:
    id: str
    name: str
    category: str
    base_price: float
    description: str = ""
    duration_minutes: int = 60
    icon_url: Optional[str] = None
    requirements: list[str] = field(default_factory=list)
    benefits: list[str] = field(default_factory=list)
    is_active: bool = True
    sort_order: int = 0
    booking_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def calculate_price(self, hours: float) -> float:
        return self.base_price * hours

    @property
    def formatted_price(self) -> str:
        return f"{format_vnd(self.base_price)}/giờ"

    @property
    def formatted_duration(self) -> str:
        hours, minutes = divmod(self.duration_minutes, 60)
        if hours and minutes:
            return f"{hours}h {minutes}m"
        if hours:
            return f"{hours}h"
        return f"{minutes}m"

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Service":
        values = dict(data)
        for key in ("created_at", "updated_at"):
            if isinstance(values.get(key), str):
                values[key] = datetime.fromisoformat(values[key])
        return cls(**values)


@dataclass
class ServiceSearchCriteria:
    query: Optional[str] = None
    category: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    max_duration: Optional[int] = None
    is_active: bool = True
