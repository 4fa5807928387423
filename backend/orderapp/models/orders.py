from __future__ import annotations

from ..extensions import db
from orderapp.time_utils import to_iso_date, to_utc_z


class Order(db.Model):
    """
    Order header: the root of the order aggregate.

    SNAPSHOT: customer_name is copied at order time and never follows later
    renames of the customer. customer_id is kept as a plain reference so the
    order survives deletion of the customer.

    CONCURRENCY: version is the mapper's version_id_col. Every UPDATE and
    DELETE of the row is issued as "... WHERE id = :id AND version = :seen",
    so a writer holding a stale copy matches zero rows and SQLAlchemy raises
    StaleDataError instead of overwriting.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_date_id", "order_date", "id"),
        db.Index("ix_orders_customer_name", "customer_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    customer_id = db.Column(db.Integer, nullable=False, index=True)
    customer_name = db.Column(db.String(255), nullable=False)

    order_date = db.Column(db.Date, nullable=False)
    total_amount = db.Column(db.BigInteger, nullable=False, default=0)

    version = db.Column(db.Integer, nullable=False, default=1)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    details = db.relationship(
        "OrderDetail",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderDetail.id",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Order id={self.id} customer={self.customer_name!r} version={self.version}>"

    def to_dict(self, include_details: bool = False) -> dict:
        data = {
            "id": self.id,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "order_date": to_iso_date(self.order_date),
            "total_amount": self.total_amount,
            "version": self.version,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_details:
            data["details"] = [d.to_dict() for d in self.details]
        return data


class OrderDetail(db.Model):
    """
    One order line, owned by exactly one order.

    SNAPSHOT: product_name and unit_price are copied at order time.
    amount is always quantity * unit_price.
    """
    __tablename__ = "order_details"
    __table_args__ = (
        db.Index("ix_order_details_order_id", "order_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)

    product_code = db.Column(db.String(64), nullable=False)
    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.BigInteger, nullable=False)
    amount = db.Column(db.BigInteger, nullable=False)

    order = db.relationship("Order", back_populates="details")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_code": self.product_code,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "amount": self.amount,
        }
