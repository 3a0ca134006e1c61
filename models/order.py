from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func
from models import BIGINT
from models import db


ORDER_STATUSES = ("NEW", "CONFIRMED", "OUT_FOR_DELIVERY", "DELIVERED", "CANCELED")
DELIVERY_WINDOWS = ("ASAP_30_60", "WITHIN_2_HOURS", "SCHEDULED")


def _iso(value):
    return value.isoformat() if value is not None else None


class Order(db.Model):
    __tablename__ = "order"
    __table_args__ = (
        db.Index("ix_order_status_created", "status", "created_at"),
    )
    id = Column(BIGINT, primary_key=True)
    customer_name = Column(String(120), nullable=True)
    phone = Column(String(30), nullable=True)
    unit = Column(String(120), nullable=False)
    notes = Column(Text, nullable=True)
    items = Column(db.JSON, nullable=False)  # snapshot: product_id, name, qty, price_cents
    delivery_window = Column(String(20), nullable=False, default="ASAP_30_60")
    requested_time = Column(DateTime(timezone=True), nullable=True)
    subtotal_cents = Column(Integer, nullable=False)
    delivery_fee_cents = Column(Integer, nullable=False, default=0)
    total_cents = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default="NEW")
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    status_logs = db.relationship(
        "OrderStatusLog", backref="order", cascade="all, delete-orphan", lazy=True
    )

    def to_dict(self):
        return {
            "id": self.id,
            "customer_name": self.customer_name,
            "phone": self.phone,
            "unit": self.unit,
            "notes": self.notes,
            "items": self.items,
            "delivery_window": self.delivery_window,
            "requested_time": _iso(self.requested_time),
            "subtotal_cents": self.subtotal_cents,
            "delivery_fee_cents": self.delivery_fee_cents,
            "total_cents": self.total_cents,
            "status": self.status,
            "created_at": _iso(self.created_at),
        }


class OrderStatusLog(db.Model):
    __tablename__ = "order_status_log"
    id = Column(BIGINT, primary_key=True)
    order_id = Column(BIGINT, ForeignKey("order.id"), nullable=False)
    status = Column(String(20), nullable=False)
    updated_by = Column(String(20), nullable=False)  # customer, admin, driver
    timestamp = Column(DateTime, default=func.now())

    def to_dict(self):
        return {
            "order_id": self.order_id,
            "status": self.status,
            "updated_by": self.updated_by,
            "timestamp": _iso(self.timestamp),
        }
