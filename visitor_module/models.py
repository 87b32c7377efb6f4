# Database model for logged page views.

from database import db  # shared SQLAlchemy db instance used across the project
from datetime import datetime, timezone


class PageVisit(db.Model):
    """One row per page view.

    The IP address is kept so we can count unique visitors; city and country
    are filled in only when geolocation is enabled.
    """
    __tablename__ = 'page_visit'
    # visits live in their own SQLite file
    __bind_key__ = 'visitors'

    id = db.Column(db.Integer, primary_key=True)

    # IPv4 or IPv6 address of the visitor
    ip_address = db.Column(db.String(45), nullable=False, index=True)
    user_agent = db.Column(db.String(255))
    page_visited = db.Column(db.String(255), nullable=False, default='home')

    city = db.Column(db.String(100))
    country = db.Column(db.String(100))

    visited_at = db.Column(
        db.DateTime, default=lambda: datetime.now(timezone.utc), index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'ip_address': self.ip_address,
            'user_agent': self.user_agent,
            'page_visited': self.page_visited,
            'city': self.city,
            'country': self.country,
            'visited_at': self.visited_at.isoformat() if self.visited_at else None,
        }

    def __repr__(self):
        return f'<PageVisit {self.ip_address} {self.page_visited}>'
