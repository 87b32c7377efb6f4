"""Create secret_key.txt next to this file for Flask sessions.

    python generate_secret_key.py           # refuses to overwrite
    python generate_secret_key.py --force   # replaces an existing key
"""
import argparse
import os
import secrets

SECRET_KEY_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'secret_key.txt')


def write_secret_key(path=SECRET_KEY_PATH, force=False):
    """Write a new random key to path and return it."""
    if os.path.exists(path) and not force:
        raise FileExistsError(f"{path} already exists (use --force to replace it)")
    secret_key = secrets.token_hex(32)
    with open(path, 'w') as f:
        f.write(secret_key)
    return secret_key


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument('--force', action='store_true', help='overwrite an existing key')
    args = parser.parse_args(argv)
    try:
        secret_key = write_secret_key(force=args.force)
    except FileExistsError as e:
        print(e)
        return 1
    print(f"Secret key generated and saved to: {SECRET_KEY_PATH}")
    print(f"Key preview: {secret_key[:10]}...")
    print("\nIMPORTANT: Add 'secret_key.txt' to .gitignore to prevent committing it!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
