from __future__ import annotations

from ..extensions import db
from orderapp.time_utils import to_utc_z


class Product(db.Model):
    """
    Product master data keyed by a caller-chosen code.

    The code is immutable once created. Like customers, products are
    last-write-wins (no version column).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_name", "name"),
    )

    code = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    # Whole currency units; never a float
    unit_price = db.Column(db.BigInteger, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Product code={self.code!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "name": self.name,
            "unit_price": self.unit_price,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
