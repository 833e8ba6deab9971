import bcrypt

# Cost factor shared with hashes already stored in the users table.
BCRYPT_ROUNDS = 10


def hash_password(password: str) -> str:
    """
    Hash a password with bcrypt.

    bcrypt only looks at the first 72 *bytes* and newer builds raise past that,
    so the limit is enforced explicitly.
    """
    if not password:
        raise ValueError("Password is required")

    pw_bytes = password.encode("utf-8")
    if len(pw_bytes) > 72:
        raise ValueError("Password must be 72 bytes or less")

    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    if not password or not hashed:
        return False
    pw_bytes = password.encode("utf-8")
    if len(pw_bytes) > 72:
        return False
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash (e.g. legacy plain-text seed rows).
        return False
