"""Password hashing service using Argon2."""

from passlib.context import CryptContext


class PasswordService:
    """Service for hashing and verifying passwords using Argon2.

    Uses passlib's CryptContext (backed by argon2-cffi) for salted,
    memory-hard hashing with constant-time verification.
    """

    def __init__(self, memory_cost: int = 65536, time_cost: int = 3, parallelism: int = 4):
        """Initialize the password service.

        Args:
            memory_cost: Argon2 memory in KiB
            time_cost: Argon2 iterations
            parallelism: Argon2 lanes
        """
        self._context = CryptContext(
            schemes=["argon2"],
            deprecated="auto",
            argon2__memory_cost=memory_cost,
            argon2__time_cost=time_cost,
            argon2__parallelism=parallelism,
        )

    def hash(self, password: str) -> str:
        """Hash a password.

        Returns:
            Encoded Argon2 hash (includes parameters, salt, and digest)
        """
        return self._context.hash(password)

    def verify(self, password: str, hash: str | None) -> bool:
        """Verify a password against a hash.

        A missing or unrecognised hash is a failed verification, not an error.
        """
        if not hash:
            return False
        try:
            return self._context.verify(password, hash)
        except (ValueError, TypeError):
            return False

    def needs_rehash(self, hash: str) -> bool:
        """Check if a hash was made with outdated parameters."""
        try:
            return self._context.needs_update(hash)
        except (ValueError, TypeError):
            return False
