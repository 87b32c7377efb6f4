import io

import pytest
from PIL import Image

from database import SubjectStore, db
from main_app import create_app


@pytest.fixture
def dogs_dir(tmp_path):
    """Empty image root named 'dogs' so stored paths start with /dogs/."""
    path = tmp_path / "dogs"
    path.mkdir()
    return path


@pytest.fixture
def app(tmp_path, dogs_dir):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'puppies.db'}",
        "SQLALCHEMY_BINDS": {"visitors": f"sqlite:///{tmp_path / 'visitors.db'}"},
        "DOGS_DIR": str(dogs_dir),
        "DOGS_URL_PREFIX": "/dogs",
        "SEED_ON_STARTUP": False,
        "TRACK_PAGE_VISITS": False,
        "VISITOR_GEOLOOKUP": False,
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.engines[None].dispose()
        db.engines["visitors"].dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    """SubjectStore bound to the test database inside an app context."""
    with app.app_context():
        yield SubjectStore(db.session)
        db.session.remove()


@pytest.fixture
def add_files():
    """Create (empty-content) files inside a folder: add_files(dogs_dir / 'gray', 'image1.jpg')."""
    def _add(folder, *names):
        folder.mkdir(parents=True, exist_ok=True)
        for name in names:
            (folder / name).write_bytes(b"not really a jpeg")
        return folder
    return _add


@pytest.fixture
def image_bytes():
    """Build a real image file in memory, for upload tests."""
    def _make(fmt="PNG", size=(64, 48), mode="RGB"):
        buf = io.BytesIO()
        Image.new(mode, size).save(buf, format=fmt)
        buf.seek(0)
        return buf
    return _make
