from datetime import datetime
from ..extensions import db


class AppSettings(db.Model):
    __tablename__ = "app_settings"
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), primary_key=True)
    company_name = db.Column(db.String(200))
    company_address = db.Column(db.String(255))
    company_contact = db.Column(db.String(120))
    company_logo_url = db.Column(db.String(500))
    rccm = db.Column(db.String(100))
    niu = db.Column(db.String(100))
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship("User", back_populates="settings")
