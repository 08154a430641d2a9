from ..extensions import db


class BudgetEntry(db.Model):
    __tablename__ = "budget_entries"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False)
    period_start = db.Column(db.Date, nullable=False)  # first day of the month
    amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    kind = db.Column(db.String(10), nullable=False)

    __table_args__ = (
        db.UniqueConstraint("user_id", "category_id", "period_start", name="uq_user_cat_period"),
    )
