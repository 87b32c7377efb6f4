from database import db

import json
from datetime import datetime, timezone

from sqlalchemy.types import Text, TypeDecorator


class ImageList(TypeDecorator):
    """A list of image path strings stored as a JSON array in a TEXT column.

    Rows written by older versions of the site keep working because the
    on-disk format is plain ``["/dogs/gray/image1.jpg", ...]``.
    """
    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            value = []
        return json.dumps([str(v) for v in value])

    def process_result_value(self, value, dialect):
        if not value:
            return []
        images = json.loads(value)
        if not isinstance(images, list):
            raise ValueError(f"images column must hold a JSON array, got {type(images).__name__}")
        return [str(v) for v in images]


class Dog(db.Model):
    """Parent dog (dam or sire). Exactly one row per kind."""
    __tablename__ = 'dogs'
    __bind_key__ = None  # Use the default database connection

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    kind = db.Column(db.String(10), unique=True, nullable=False)
    images = db.Column(ImageList, nullable=False, default=lambda: [])
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.CheckConstraint("kind IN ('dam', 'sire')", name='ck_dogs_kind'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'type': self.kind,
            'images': list(self.images),
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Dog {self.kind}: {self.name}>'


class Puppy(db.Model):
    """Puppy listed in the gallery."""
    __tablename__ = 'puppies'
    __bind_key__ = None  # Use the default database connection

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, index=True)
    images = db.Column(ImageList, nullable=False, default=lambda: [])
    is_sold = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    @property
    def kind(self):
        return 'puppy'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'images': list(self.images),
            'isSold': bool(self.is_sold),
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Puppy {self.name}>'
