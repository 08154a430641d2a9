"""The cashier who owns a cash book: categories, transactions, budgets and one letterhead."""
from datetime import datetime
from flask_login import UserMixin
from sqlalchemy.orm import validates
from werkzeug.security import generate_password_hash, check_password_hash
from ..extensions import db, login_manager


class User(UserMixin, db.Model):
    __tablename__ = "users"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    categories = db.relationship("Category", backref="user", lazy=True, cascade="all, delete-orphan",
                                 order_by="Category.name")
    transactions = db.relationship("Transaction", backref="user", lazy=True, cascade="all, delete-orphan")
    budget_entries = db.relationship("BudgetEntry", backref="user", lazy=True, cascade="all, delete-orphan")
    # at most one row, keyed by user_id; absent until the letterhead is first saved
    settings = db.relationship("AppSettings", back_populates="user", uselist=False, single_parent=True,
                               cascade="all, delete-orphan")

    @validates("email")
    def normalize_email(self, key, value):
        return (value or "").strip().lower()

    @property
    def company_name(self) -> str:
        """Letterhead name once saved, else the cashier's own name."""
        if self.settings is not None and self.settings.company_name:
            return self.settings.company_name
        return self.name

    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def __repr__(self):
        return f"<User {self.id} {self.email}>"


@login_manager.user_loader
def load_user(user_id):
    try:
        return db.session.get(User, int(user_id))
    except (TypeError, ValueError):
        return None
