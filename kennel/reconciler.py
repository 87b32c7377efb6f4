"""
One-way reconciliation of the image folder tree into the dogs/puppies tables.

Layout of the image root::

    dogs/
      dam/image1.jpg ...       -> the dam ("Queenie")
      sire/image1.jpg ...      -> the sire ("King")
      gray/image1.jpg ...      -> puppy "Gray"

Every sync only creates subjects and appends image paths. Nothing is ever
removed or reordered here; deleting images is an explicit admin action.
"""
import logging
import os
import re
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import List, Optional

from .errors import (DirectoryUnreadable, PersistenceWriteFailure,
                     ReconcileInProgress, SeedResetError)
from .seed import PARENT_NAMES, seed_dogs, seed_puppies

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.gif', '.webp')
IMAGE_NUMBER_RE = re.compile(r'image(\d+)\.')

# Shared by every reconciler in the process: syncs and resets never overlap.
_sync_lock = threading.Lock()


@dataclass
class FolderIssue:
    folder: str
    reason: str

    def to_dict(self):
        return {'folder': self.folder, 'reason': self.reason}


@dataclass
class SyncReport:
    """Outcome of a full or incremental sync."""
    subjects_created: int = 0
    subjects_updated: int = 0
    images_appended: int = 0
    images_created: int = 0
    skipped: List[FolderIssue] = field(default_factory=list)
    failed: List[FolderIssue] = field(default_factory=list)

    def skip(self, folder, reason):
        self.skipped.append(FolderIssue(folder, reason))

    def fail(self, folder, reason):
        self.failed.append(FolderIssue(folder, reason))

    def to_dict(self):
        return {
            'subjects_created': self.subjects_created,
            'subjects_updated': self.subjects_updated,
            'images_appended': self.images_appended,
            'images_created': self.images_created,
            'skipped': [s.to_dict() for s in self.skipped],
            'failed': [f.to_dict() for f in self.failed],
        }


def image_sort_key(filename):
    """Numbered ``imageN.ext`` files first by N, then everything else by name."""
    match = IMAGE_NUMBER_RE.search(filename)
    if match:
        return (0, int(match.group(1)), filename)
    logger.debug("No image number in %s, ordering by name", filename)
    return (1, 0, filename)


def sort_image_filenames(filenames):
    return sorted(filenames, key=image_sort_key)


def is_image_file(filename):
    return filename.lower().endswith(IMAGE_EXTENSIONS)


def puppy_name_from_folder(folder):
    """'gray' -> 'Gray'. Only the first letter changes."""
    return folder[:1].upper() + folder[1:]


def merge_new_images(existing, candidates):
    """Return the candidates that are not in ``existing``, in candidate order."""
    seen = set(existing)
    new_images = []
    for path in candidates:
        if path not in seen:
            seen.add(path)
            new_images.append(path)
    return new_images


def list_subfolders(root_dir):
    """Names of the immediate subdirectories of root_dir, sorted."""
    try:
        with os.scandir(root_dir) as entries:
            return sorted(e.name for e in entries if e.is_dir())
    except OSError as e:
        raise DirectoryUnreadable(root_dir, e.strerror or str(e)) from e


def list_image_files(folder_path):
    """Image filenames directly inside folder_path, in display order."""
    with os.scandir(folder_path) as entries:
        names = [e.name for e in entries if e.is_file() and is_image_file(e.name)]
    return sort_image_filenames(names)


class DirectoryReconciler:
    """Brings the store in line with the image folders on disk."""

    def __init__(self, store, lock: Optional[threading.Lock] = None):
        self.store = store
        self.lock = lock or _sync_lock

    @contextmanager
    def _exclusive(self, operation):
        if not self.lock.acquire(blocking=False):
            logger.warning("%s refused: another sync or reset is running", operation)
            raise ReconcileInProgress(f"Cannot start {operation}: another sync or reset is running")
        try:
            yield
        finally:
            self.lock.release()

    def full_sync(self, root_dir, url_prefix=None) -> SyncReport:
        """Create missing subjects and append new images for every folder."""
        with self._exclusive('full sync'):
            return self._sync(root_dir, url_prefix, create_missing=True)

    def incremental_sync(self, root_dir, url_prefix=None) -> SyncReport:
        """Append new images to subjects that already exist; never create any."""
        with self._exclusive('incremental sync'):
            return self._sync(root_dir, url_prefix, create_missing=False)

    def reset_to_seed(self):
        """Replace every dog and puppy with the seed set, all or nothing."""
        with self._exclusive('seed reset'):
            try:
                self.store.delete_all(commit=False)
                self.store.bulk_insert(seed_dogs(), seed_puppies(), commit=False)
                self.store.commit()
            except Exception as e:
                self.store.rollback()
                logger.exception("Seed reset failed, previous data kept")
                raise SeedResetError(f"Seed reset failed: {e}") from e
            logger.info("Store reset to seed set")
            return {'success': True}

    # ------------------------------------------------------------------
    def _sync(self, root_dir, url_prefix, create_missing):
        if url_prefix is None:
            url_prefix = '/' + os.path.basename(os.path.normpath(root_dir))
        url_prefix = url_prefix.rstrip('/')

        report = SyncReport()
        for folder in list_subfolders(root_dir):
            if folder.startswith('.'):
                report.skip(folder, 'hidden folder')
                continue
            self._sync_folder(root_dir, url_prefix, folder, create_missing, report)

        logger.info(
            "%s sync of %s: %d created, %d updated, %d images appended, %d skipped, %d failed",
            'Full' if create_missing else 'Incremental', root_dir,
            report.subjects_created, report.subjects_updated, report.images_appended,
            len(report.skipped), len(report.failed),
        )
        return report

    def _sync_folder(self, root_dir, url_prefix, folder, create_missing, report):
        try:
            filenames = list_image_files(os.path.join(root_dir, folder))
        except OSError as e:
            logger.warning("Skipping unreadable folder %s: %s", folder, e)
            report.skip(folder, f"unreadable: {e.strerror or e}")
            return

        candidates = [f"{url_prefix}/{folder}/{name}" for name in filenames]
        is_parent = folder in PARENT_NAMES
        name = PARENT_NAMES[folder] if is_parent else puppy_name_from_folder(folder)

        try:
            if is_parent:
                subject = self.store.get_parent(folder)
            else:
                subject = self.store.get_puppy_by_name(name)

            if subject is None:
                if not create_missing:
                    report.skip(folder, 'no matching record')
                    return
                if is_parent:
                    self.store.create_parent(folder, name, candidates)
                else:
                    self.store.create_puppy(name, candidates, is_sold=False)
                report.subjects_created += 1
                report.images_created += len(candidates)
                logger.info("Created %s with %d images", name, len(candidates))
                return

            new_images = merge_new_images(subject.images, candidates)
            if not new_images:
                return
            self.store.update_images(subject, list(subject.images) + new_images)
            report.subjects_updated += 1
            report.images_appended += len(new_images)
            logger.info("Appended %d images to %s", len(new_images), name)
        except PersistenceWriteFailure as e:
            report.fail(folder, str(e))
        except Exception as e:
            # Reads can fail too (e.g. a corrupt images column); keep going.
            self.store.rollback()
            logger.exception("Sync of folder %s failed", folder)
            report.fail(folder, str(e))
