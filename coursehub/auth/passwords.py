from werkzeug.security import check_password_hash, generate_password_hash


def hash_password(password: str, method: str | None = None) -> str:
    """Salted hash in werkzeug's ``method$salt$hash`` format (scrypt unless ``method`` is given)."""
    if method is None:
        return generate_password_hash(password)
    return generate_password_hash(password, method=method)


def verify_password(password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    try:
        return check_password_hash(hashed_password, password)
    except ValueError:
        # Unknown or truncated hash method stored on the row.
        return False
