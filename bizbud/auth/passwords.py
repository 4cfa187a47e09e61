"""Password hashing with bcrypt"""

try:
    import bcrypt
except ImportError:
    raise ImportError("bcrypt is required. Install with: pip install bcrypt")

DEFAULT_ROUNDS = 12


class PasswordHasher:
    """Salted adaptive hash; rounds below 12 are only for tests"""

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a password using bcrypt"""
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a password against its hash"""
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            # malformed hash
            return False
