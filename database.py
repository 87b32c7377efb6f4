"""
Database configuration for SQLAlchemy.
This module creates the shared database instance used across the application,
plus the SubjectStore that every puppy/dog read and write goes through.
"""
import logging
from contextlib import contextmanager

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import SQLAlchemyError

# Create the database instance
# This will be initialized with the Flask app in main_app.py
db = SQLAlchemy()

logger = logging.getLogger(__name__)


class SubjectStore:
    """Read/write access to the dogs and puppies tables.

    The store is built around an explicit session (normally ``db.session``)
    and handed to whoever needs it. Every write helper commits unless told
    otherwise; on failure it rolls back and raises PersistenceWriteFailure.
    """

    def __init__(self, session):
        self.session = session

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_parent(self, kind):
        from kennel.models import Dog
        return self.session.query(Dog).filter_by(kind=kind).first()

    def get_parents(self):
        """Return {'dam': Dog|None, 'sire': Dog|None}."""
        from kennel.models import Dog
        parents = {'dam': None, 'sire': None}
        for dog in self.session.query(Dog).order_by(Dog.kind).all():
            parents[dog.kind] = dog
        return parents

    def get_puppy(self, puppy_id):
        from kennel.models import Puppy
        return self.session.get(Puppy, puppy_id)

    def get_puppy_by_name(self, name):
        from kennel.models import Puppy
        return self.session.query(Puppy).filter_by(name=name).order_by(Puppy.id).first()

    def list_puppies(self):
        """All puppies, newest first."""
        from kennel.models import Puppy
        return self.session.query(Puppy).order_by(Puppy.created_at.desc(), Puppy.id.desc()).all()

    def count_subjects(self):
        from kennel.models import Dog, Puppy
        return self.session.query(Dog).count() + self.session.query(Puppy).count()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def create_parent(self, kind, name, images, commit=True):
        from kennel.models import Dog
        dog = Dog(kind=kind, name=name, images=list(images))
        self.session.add(dog)
        self._commit(commit, f"create {kind}")
        return dog

    def create_puppy(self, name, images, is_sold=False, commit=True):
        from kennel.models import Puppy
        puppy = Puppy(name=name, images=list(images), is_sold=is_sold)
        self.session.add(puppy)
        self._commit(commit, f"create puppy {name}")
        return puppy

    def update_images(self, subject, images, commit=True):
        # Assign a fresh list so the JSON column is flagged dirty
        subject.images = list(images)
        self._commit(commit, f"update images of {subject.name}")
        return subject

    def set_sold(self, puppy, is_sold, commit=True):
        puppy.is_sold = bool(is_sold)
        self._commit(commit, f"set sold flag of {puppy.name}")
        return puppy

    def remove_image(self, subject, image_path, commit=True):
        """Drop one path from a subject's images. Returns True if it was present."""
        if image_path not in subject.images:
            return False
        self.update_images(subject, [img for img in subject.images if img != image_path], commit=commit)
        return True

    def delete_puppy(self, puppy, commit=True):
        self.session.delete(puppy)
        self._commit(commit, f"delete puppy {puppy.name}")

    def delete_all(self, commit=True):
        from kennel.models import Dog, Puppy
        self.session.query(Puppy).delete()
        self.session.query(Dog).delete()
        self._commit(commit, "delete all subjects")

    def bulk_insert(self, dogs, puppies, commit=True):
        """Insert Dog and Puppy instances in one go."""
        self.session.add_all(list(dogs) + list(puppies))
        self._commit(commit, "bulk insert subjects")

    def seed_if_empty(self):
        """Install the seed set when both tables are empty. Returns True if seeded."""
        from kennel.seed import seed_dogs, seed_puppies
        if self.count_subjects():
            return False
        self.bulk_insert(seed_dogs(), seed_puppies())
        logger.info("Empty store seeded with initial dogs and puppies")
        return True

    # ------------------------------------------------------------------
    # Transaction control
    # ------------------------------------------------------------------
    def commit(self):
        self._commit(True, "commit")

    def rollback(self):
        self.session.rollback()

    def close(self):
        self.session.close()

    def _commit(self, commit, action):
        if not commit:
            self.session.flush()
            return
        from kennel.errors import PersistenceWriteFailure
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Store write failed (%s): %s", action, e)
            raise PersistenceWriteFailure(f"{action} failed: {e}") from e


@contextmanager
def open_store(session=None):
    """Yield a SubjectStore; roll back on error and always release the session."""
    store = SubjectStore(session if session is not None else db.session)
    try:
        yield store
    except Exception:
        store.rollback()
        raise
    finally:
        store.close()
