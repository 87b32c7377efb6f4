# Fixed data set installed into an empty store and by the admin "reset" action.

from .models import Dog, Puppy

PARENT_NAMES = {
    'dam': 'Queenie',
    'sire': 'King',
}

SEED_PARENT_IMAGES = {
    'dam': [f"/dogs/dam/image{i}.jpg" for i in range(1, 7)],
    'sire': [f"/dogs/sire/image{i}.jpg" for i in range(1, 5)],
}

# (name, images, is_sold)
SEED_PUPPIES = [
    ('Gray', ["/dogs/gray/image1.jpg", "/dogs/gray/image2.jpg"], False),
    ('Red', ["/dogs/red/image1.jpg"], False),
    ('Blue', ["/dogs/blue/image1.jpg"], False),
    ('Sky', ["/dogs/sky/image1.jpg"], False),
    ('Fuchsia', ["/dogs/fuchsia/image1.jpg"], False),
    ('Yellow', ["/dogs/yellow/image1.jpg"], False),
    ('Green', ["/dogs/green/image1.jpg"], True),
    ('Pink', ["/dogs/pink/image1.jpg"], True),
    ('Violet', ["/dogs/violet/image1.jpg"], False),
]


def seed_dogs():
    """Fresh (unsaved) Dog rows for the dam and sire."""
    return [
        Dog(kind=kind, name=PARENT_NAMES[kind], images=list(SEED_PARENT_IMAGES[kind]))
        for kind in ('dam', 'sire')
    ]


def seed_puppies():
    """Fresh (unsaved) Puppy rows."""
    return [Puppy(name=name, images=list(images), is_sold=sold) for name, images, sold in SEED_PUPPIES]
