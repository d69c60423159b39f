import logging

from passlib.context import CryptContext
from passlib.handlers import bcrypt as passlib_bcrypt

logging.getLogger("passlib.handlers.bcrypt").setLevel(logging.ERROR)

# Skip passlib's wraparound self-test; bcrypt>=5 rejects its 72+ byte probe.
passlib_bcrypt._BcryptBackend._workrounds_initialized = True

# Admin hashes are always bcrypt_sha256, so secrets never hit bcrypt's
# 72-byte limit.
pwd_ctx = CryptContext(schemes=["bcrypt_sha256"], deprecated="auto")


def hash_password(plain: str) -> str:
    return pwd_ctx.hash(plain)


def check_password(plain: str, hashed: str) -> bool:
    """Verify plain password against hash; malformed hashes never match."""
    if not plain or not hashed:
        return False
    try:
        return pwd_ctx.verify(plain, hashed)
    except ValueError:
        return False
