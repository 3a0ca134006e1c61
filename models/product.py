from models import db, BIGINT
from datetime import datetime


class Product(db.Model):
    __tablename__ = "product"

    id = db.Column(BIGINT, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    category = db.Column(db.String(50), nullable=True)            # snacks, drinks, household
    price_cents = db.Column(db.Integer, nullable=False)
    image_url = db.Column(db.String(500), nullable=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "price_cents": self.price_cents,
            "image_url": self.image_url,
            "sort_order": self.sort_order,
        }
