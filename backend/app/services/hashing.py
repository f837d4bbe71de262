"""Password hashing collaborator (werkzeug salted hashes)."""
from werkzeug.security import check_password_hash, generate_password_hash


class PasswordHasher:
    def __init__(self, method: str = "scrypt"):
        self.method = method

    def hash(self, plaintext: str) -> str:
        return generate_password_hash(plaintext, method=self.method)

    def check(self, plaintext: str, password_hash: str) -> bool:
        return check_password_hash(password_hash, plaintext)
