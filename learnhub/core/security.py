"""Password hashing and session cookie signing (session-based auth)."""
import base64
import hmac
import hashlib
import time

from passlib.context import CryptContext


def build_password_context(rounds: int = 12) -> CryptContext:
    """bcrypt context; rounds is the cost factor (log2 of iterations)."""
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def verify_password(pwd_context: CryptContext, plain: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        # malformed stored hash (e.g. a legacy plaintext value)
        return False


def hash_password(pwd_context: CryptContext, password: str) -> str:
    return pwd_context.hash(password)


def dummy_verify(pwd_context: CryptContext) -> None:
    """Spend the same time as a real verify when there is no user to check."""
    pwd_context.dummy_verify()


# Session token: base64(user_id:timestamp).hmac
def _signature(secret_key: str, payload: bytes) -> str:
    return hmac.new(secret_key.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def create_session_token(user_id: int, secret_key: str) -> str:
    """Create a signed session token for the user (for the session cookie)."""
    ts = int(time.time())
    payload = f"{user_id}:{ts}".encode("utf-8")
    encoded = base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=")
    return encoded + "." + _signature(secret_key, payload)


def verify_session_token(token: str | None, secret_key: str, max_age: int) -> int | None:
    """Verify signed token and return user_id if valid; None otherwise."""
    if not token or "." not in token:
        return None
    try:
        encoded, sig = token.rsplit(".", 1)
        pad = 4 - len(encoded) % 4
        if pad != 4:
            encoded += "=" * pad
        payload = base64.urlsafe_b64decode(encoded)
        if not hmac.compare_digest(_signature(secret_key, payload), sig):
            return None
        parts = payload.decode("utf-8").split(":", 1)
        user_id = int(parts[0])
        ts = int(parts[1])
        if abs(time.time() - ts) > max_age:
            return None
        return user_id
    except (ValueError, IndexError, UnicodeDecodeError):
        return None
