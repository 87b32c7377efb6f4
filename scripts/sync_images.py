#!/usr/bin/env python3
"""Sync the image folders into the database from the command line.
Run from the project root in the virtualenv:
    python -m scripts.sync_images            # append new images only
    python -m scripts.sync_images --full     # also create records for new folders
    python -m scripts.sync_images --dir D:\\site\\dogs
"""
import argparse
import json
import sys

from main_app import create_app
from database import open_store
from kennel.errors import KennelError
from kennel.reconciler import DirectoryReconciler


def main(argv=None):
    parser = argparse.ArgumentParser(description="Sync dog image folders into the database.")
    parser.add_argument("--full", action="store_true", help="create records for folders not in the database")
    parser.add_argument("--dir", help="image root (defaults to DOGS_DIR)")
    args = parser.parse_args(argv)

    app = create_app()
    with app.app_context():
        root_dir = args.dir or app.config["DOGS_DIR"]
        try:
            with open_store() as store:
                reconciler = DirectoryReconciler(store)
                if args.full:
                    report = reconciler.full_sync(root_dir, app.config["DOGS_URL_PREFIX"])
                else:
                    report = reconciler.incremental_sync(root_dir, app.config["DOGS_URL_PREFIX"])
        except KennelError as e:
            print(f"Sync failed: {e}")
            return 1
    print(json.dumps(report.to_dict(), indent=2))
    return 1 if report.failed else 0


if __name__ == "__main__":
    sys.exit(main())
