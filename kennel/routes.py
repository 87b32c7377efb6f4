from flask import current_app, jsonify, render_template, request, send_from_directory
from PIL import UnidentifiedImageError

from . import kennel_bp
from .errors import DirectoryUnreadable, ReconcileInProgress, SeedResetError
from .reconciler import DirectoryReconciler
from .utils import allowed_file, clean_folder_name, next_image_number, resolve_image_path, save_uploaded_image
from database import open_store
import logging
import os


def _dogs_dir():
    return current_app.config['DOGS_DIR']


def _url_prefix():
    return current_app.config['DOGS_URL_PREFIX']


def _parse_id(value):
    """int for 3 or "3"; None for anything else (including booleans)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return None


def _gallery_data(store):
    """Plain dicts for the templates and the JSON API."""
    parents = store.get_parents()
    return {
        'puppies': [p.to_dict() for p in store.list_puppies()],
        'dam': parents['dam'].to_dict() if parents['dam'] else None,
        'sire': parents['sire'].to_dict() if parents['sire'] else None,
    }


# ---------------------------------------------------------------------------
# PAGES
# ---------------------------------------------------------------------------
@kennel_bp.route('/')
def gallery():
    """Public gallery: the parents on top, then every puppy with its photos."""
    try:
        with open_store() as store:
            data = _gallery_data(store)
    except Exception:
        logging.exception("Error loading gallery page")
        data = {'puppies': [], 'dam': None, 'sire': None}
    return render_template('gallery.html', **data)


@kennel_bp.route('/admin')
def admin():
    """Admin page: uploads, sold toggles, new puppies, sync and reset buttons."""
    with open_store() as store:
        data = _gallery_data(store)
    return render_template('admin.html', **data)


def serve_dog_image(filename):
    """Image files under DOGS_DIR. Registered in main_app at DOGS_URL_PREFIX."""
    return send_from_directory(_dogs_dir(), filename)


# ---------------------------------------------------------------------------
# PUPPY API
# ---------------------------------------------------------------------------
@kennel_bp.route('/api/puppies', methods=['GET'])
def list_puppies():
    """Return {puppies, dam, sire}. An empty store gets the seed set first."""
    try:
        with open_store() as store:
            store.seed_if_empty()
            return jsonify(_gallery_data(store))
    except Exception:
        logging.exception("Error fetching puppies")
        return jsonify({'error': 'Failed to fetch puppies'}), 500


@kennel_bp.route('/api/puppies', methods=['POST'])
def add_puppy():
    """Accept JSON {"name": "Gray", "images": ["/dogs/gray/image1.jpg", ...]}."""
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    images = data.get('images')
    if not name or images is None:
        return jsonify({'error': 'Name and images are required'}), 400
    if not isinstance(images, list) or not all(isinstance(img, str) for img in images):
        return jsonify({'error': 'Images must be a list of paths'}), 400

    # Drop repeated paths, keeping the first occurrence
    images = list(dict.fromkeys(images))
    try:
        with open_store() as store:
            if store.get_puppy_by_name(name) is not None:
                return jsonify({'error': f'A puppy named {name} already exists'}), 409
            puppy = store.create_puppy(name, images, is_sold=False)
            current_app.logger.info(f"Added puppy {name} with {len(images)} images")
            return jsonify({'success': True, 'id': puppy.id})
    except Exception:
        logging.exception("Error adding puppy")
        return jsonify({'error': 'Failed to add puppy'}), 500


@kennel_bp.route('/api/puppies/<int:puppy_id>', methods=['PATCH'])
def update_puppy(puppy_id):
    """Accept JSON {"isSold": true|false}."""
    data = request.get_json(silent=True) or {}
    is_sold = data.get('isSold')
    if not isinstance(is_sold, bool):
        return jsonify({'error': 'isSold must be true or false'}), 400
    try:
        with open_store() as store:
            puppy = store.get_puppy(puppy_id)
            if puppy is None:
                return jsonify({'error': 'Puppy not found'}), 404
            store.set_sold(puppy, is_sold)
            return jsonify({'success': True})
    except Exception:
        logging.exception("Error updating puppy %s", puppy_id)
        return jsonify({'error': 'Failed to update puppy'}), 500


@kennel_bp.route('/api/puppies/<int:puppy_id>', methods=['DELETE'])
def delete_puppy(puppy_id):
    try:
        with open_store() as store:
            puppy = store.get_puppy(puppy_id)
            if puppy is None:
                return jsonify({'error': 'Puppy not found'}), 404
            store.delete_puppy(puppy)
            return jsonify({'success': True})
    except Exception:
        logging.exception("Error deleting puppy %s", puppy_id)
        return jsonify({'error': 'Failed to delete puppy'}), 500


# ---------------------------------------------------------------------------
# IMAGE FILES
# ---------------------------------------------------------------------------
@kennel_bp.route('/api/upload', methods=['POST'])
def upload_images():
    """
    Save uploaded photos into DOGS_DIR/<folder>/ as image<N>.jpg.
    Numbering continues after the highest existing imageN file, so nothing
    already on disk is overwritten. The database is not touched; run a sync
    or add the puppy afterwards.
    """
    folder = clean_folder_name(request.form.get('folder'))
    files = [f for f in request.files.getlist('images') if f and f.filename]
    if not folder or not files:
        return jsonify({'error': 'Missing folder or images'}), 400

    folder_path = os.path.join(_dogs_dir(), folder)
    number = next_image_number(folder_path)
    saved, errors = [], []
    for file in files:
        if not allowed_file(file.filename):
            errors.append({'file': file.filename, 'reason': 'Invalid file type'})
            continue
        try:
            filename, _, width, height, size = save_uploaded_image(
                file, folder_path, number,
                max_width=current_app.config['MAX_IMAGE_WIDTH'],
                max_height=current_app.config['MAX_IMAGE_HEIGHT'],
            )
        except (UnidentifiedImageError, OSError) as e:
            current_app.logger.warning(f"Could not save upload {file.filename}: {e}")
            errors.append({'file': file.filename, 'reason': 'Not a readable image'})
            continue
        logging.info("Saved %s/%s (%dx%d, %d bytes)", folder, filename, width, height, size)
        saved.append(f"{_url_prefix()}/{folder}/{filename}")
        number += 1

    if not saved:
        return jsonify({'error': 'No images could be saved', 'errors': errors}), 400
    return jsonify({
        'success': True,
        'message': f'Uploaded {len(saved)} image(s) to {folder} folder',
        'folder': folder,
        'images': saved,
        'errors': errors,
    })


@kennel_bp.route('/api/delete-image', methods=['POST'])
def delete_image():
    """Accept JSON {"imagePath": "/dogs/gray/image2.jpg", "puppyId": 3}.

    Bad input and unknown puppies are rejected before anything is removed.
    The path is dropped from the puppy first, then the file is deleted.
    """
    data = request.get_json(silent=True) or {}
    image_path = data.get('imagePath')
    puppy_id = data.get('puppyId')
    if not image_path:
        return jsonify({'error': 'No image path provided'}), 400

    if puppy_id is not None:
        puppy_id = _parse_id(puppy_id)
        if puppy_id is None:
            return jsonify({'error': 'puppyId must be a whole number'}), 400

    file_path = resolve_image_path(_dogs_dir(), _url_prefix(), image_path)
    if file_path is None:
        return jsonify({'error': 'Invalid image path'}), 400

    try:
        with open_store() as store:
            if puppy_id is not None:
                puppy = store.get_puppy(puppy_id)
                if puppy is None:
                    return jsonify({'error': 'Puppy not found'}), 404
                store.remove_image(puppy, image_path)
        if os.path.exists(file_path):
            os.remove(file_path)
        else:
            current_app.logger.warning(f"Image file already gone: {file_path}")
        return jsonify({'success': True})
    except Exception:
        logging.exception("Error deleting image %s", image_path)
        return jsonify({'error': 'Failed to delete image'}), 500


# ---------------------------------------------------------------------------
# RECONCILIATION
# ---------------------------------------------------------------------------
def _run_sync(full):
    try:
        with open_store() as store:
            reconciler = DirectoryReconciler(store)
            if full:
                report = reconciler.full_sync(_dogs_dir(), _url_prefix())
                message = 'All folders synced'
            else:
                report = reconciler.incremental_sync(_dogs_dir(), _url_prefix())
                message = 'New images added incrementally'
            return jsonify({'success': True, 'message': message, **report.to_dict()})
    except ReconcileInProgress as e:
        return jsonify({'success': False, 'error': str(e)}), 409
    except DirectoryUnreadable as e:
        current_app.logger.error(f"Sync aborted: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500
    except Exception:
        logging.exception("Sync failed")
        return jsonify({'success': False, 'error': 'Sync failed'}), 500


@kennel_bp.route('/api/sync-data', methods=['POST'])
def sync_data():
    """Append newly found images to existing dogs and puppies."""
    return _run_sync(full=False)


@kennel_bp.route('/api/full-sync', methods=['POST'])
def full_sync():
    """Like sync-data, but also creates records for new folders."""
    return _run_sync(full=True)


@kennel_bp.route('/api/reset-images', methods=['POST'])
def reset_images():
    try:
        with open_store() as store:
            DirectoryReconciler(store).reset_to_seed()
        return jsonify({'success': True, 'message': 'Database reset to original images successfully'})
    except ReconcileInProgress as e:
        return jsonify({'success': False, 'error': str(e)}), 409
    except SeedResetError as e:
        return jsonify({'success': False, 'error': str(e)}), 500
