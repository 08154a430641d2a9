from datetime import date, datetime
from ..extensions import db


class Transaction(db.Model):
    __tablename__ = "transactions"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True)
    order_number = db.Column(db.String(50))  # N° d'ordre
    date = db.Column(db.Date, default=date.today, nullable=False)
    description = db.Column(db.String(100), nullable=False)
    reference = db.Column(db.String(50))
    amount = db.Column(db.Numeric(14, 2), nullable=False)
    kind = db.Column(db.String(10), nullable=False)  # income/expense
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
