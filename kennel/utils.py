# Utility functions for the kennel pages (image upload helpers, path checks).
import os
import re

from PIL import Image
from werkzeug.utils import secure_filename

from .reconciler import IMAGE_NUMBER_RE, is_image_file

ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp'}
FOLDER_NAME_RE = re.compile(r'^[a-z0-9_-]+$')


def allowed_file(filename):
    """Check if file extension is allowed."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def clean_folder_name(folder):
    """Turn user input like ' Gray ' into a safe folder name ('gray'). Returns '' if unusable."""
    folder = secure_filename((folder or '').strip()).lower()
    return folder if FOLDER_NAME_RE.match(folder) else ''


def next_image_number(folder_path):
    """1 + the highest N among existing imageN.* files (1 for an empty/missing folder)."""
    if not os.path.isdir(folder_path):
        return 1
    highest = 0
    for name in os.listdir(folder_path):
        if not is_image_file(name):
            continue
        match = IMAGE_NUMBER_RE.search(name)
        if match:
            highest = max(highest, int(match.group(1)))
    return highest + 1


def save_uploaded_image(file, folder_path, number, max_width=1920, max_height=1920):
    """
    Save an uploaded image as JPEG named image<number>.jpg, shrinking it if needed.
    Returns: (filename, file_path, width, height, file_size)
    """
    filename = f"image{number}.jpg"
    file_path = os.path.join(folder_path, filename)

    # Ensure upload folder exists
    os.makedirs(folder_path, exist_ok=True)

    img = Image.open(file)
    width, height = img.size

    # Resize if too large
    if width > max_width or height > max_height:
        img.thumbnail((max_width, max_height), Image.Resampling.LANCZOS)
        width, height = img.size

    # Convert RGBA to RGB if needed (for JPEG)
    if img.mode in ('RGBA', 'LA', 'P'):
        background = Image.new('RGB', img.size, (255, 255, 255))
        if img.mode == 'P':
            img = img.convert('RGBA')
        background.paste(img, mask=img.split()[-1] if img.mode in ('RGBA', 'LA') else None)
        img = background
    elif img.mode != 'RGB':
        img = img.convert('RGB')

    img.save(file_path, 'JPEG', optimize=True, quality=85)
    file_size = os.path.getsize(file_path)

    return filename, file_path, width, height, file_size


def resolve_image_path(dogs_dir, url_prefix, image_path):
    """
    Map a stored path like '/dogs/gray/image1.jpg' to the file under dogs_dir.
    Returns None if the path is outside the image tree.
    """
    prefix = url_prefix.rstrip('/') + '/'
    if not image_path or not image_path.startswith(prefix):
        return None
    relative = image_path[len(prefix):]
    root = os.path.realpath(dogs_dir)
    full_path = os.path.realpath(os.path.join(root, *relative.split('/')))
    if os.path.commonpath([root, full_path]) != root or full_path == root:
        return None
    return full_path
