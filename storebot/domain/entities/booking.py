from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Booking:
    service_name: str
    date: str  # YYYY-MM-DD
    time: str  # HH:MM
    customer_name: str
    customer_email: str
    customer_phone: str | None = None
    status: str = "confirmed"
    created_at: str | None = None  # ISO timestamp
    confirmation: str | None = None

    def to_row(self) -> dict[str, str]:
        """Row as appended to the Bookings tab."""
        return {
            "service": self.service_name,
            "date": self.date,
            "time": self.time,
            "customerName": self.customer_name,
            "email": self.customer_email,
            "phone": self.customer_phone or "",
            "status": self.status,
            "createdAt": self.created_at or "",
            "confirmation": self.confirmation or "",
        }

    def to_dict(self) -> dict[str, str | None]:
        return {
            "service": self.service_name,
            "date": self.date,
            "time": self.time,
            "customer_name": self.customer_name,
            "email": self.customer_email,
            "phone": self.customer_phone,
            "status": self.status,
            "created_at": self.created_at,
            "confirmation": self.confirmation,
        }
