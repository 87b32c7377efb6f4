"""Replace every dog and puppy in the database with the built-in seed set.
Run from the project root:
    python -m scripts.reset_to_seed
"""
import sys

from main_app import create_app
from database import open_store
from kennel.errors import KennelError
from kennel.reconciler import DirectoryReconciler

if __name__ == "__main__":
    print("This will DELETE all dogs and puppies and restore the original seed data.")
    confirm = input("Type YES to continue: ")
    if confirm.strip().upper() != "YES":
        print("Aborted.")
        sys.exit(1)

    app = create_app()
    with app.app_context():
        try:
            with open_store() as store:
                DirectoryReconciler(store).reset_to_seed()
        except KennelError as e:
            print(f"Reset failed, previous data kept: {e}")
            sys.exit(1)
    print("Database reset to the seed set.")
