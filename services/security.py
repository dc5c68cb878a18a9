import hashlib
import hmac
import os

HASH_SCHEME = "pbkdf2_sha256"
HASH_ITERATIONS = 120_000


def _derive(password: str, salt: bytes, iterations: int) -> str:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations).hex()


def hash_password(password: str, iterations: int = HASH_ITERATIONS) -> str:
    """Return "scheme$iterations$salt$digest" for storage in users.password_hash."""
    salt = os.urandom(16)
    return "$".join((HASH_SCHEME, str(iterations), salt.hex(), _derive(password, salt, iterations)))


def verify_password(password: str, password_hash: str | None) -> bool:
    parts = (password_hash or "").split("$")
    if len(parts) != 4 or parts[0] != HASH_SCHEME:
        return False
    _, iterations, salt, digest = parts
    try:
        candidate = _derive(password, bytes.fromhex(salt), int(iterations))
    except ValueError:
        return False
    return hmac.compare_digest(candidate, digest)
