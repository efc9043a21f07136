# catalog_auth/adapters/outbound/security/secret_hasher.py

import secrets

from passlib.context import CryptContext

# pbkdf2_sha256 is pure passlib; no native backend required
crypt_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

SECRET_HINT_LENGTH = 4


class SecretHasher:
    """
    Hashing and generation of client secrets.
    """

    @classmethod
    def generate_secret(cls) -> str:
        """
        Generate a new random client secret (URL safe, 256 bits).
        """
        return secrets.token_urlsafe(32)

    @classmethod
    def hash_secret(cls, secret: str) -> str:
        """
        Generate secure secret hash for storage in the database.
        """
        return crypt_context.hash(secret)

    @classmethod
    def verify_secret(cls, plain_secret: str, hashed_secret: str) -> bool:
        """
        Compare plain text secret with stored hash.

        Unknown or corrupted hashes count as a mismatch.
        """
        if not plain_secret or not hashed_secret:
            return False
        try:
            return crypt_context.verify(plain_secret, hashed_secret)
        except ValueError:
            return False

    @classmethod
    def hint(cls, secret: str) -> str:
        """Last characters of the secret, safe to show back to operators."""
        return secret[-SECRET_HINT_LENGTH:]


if __name__ == "__main__":
    import getpass

    print("Client secret hash generator")
    secret = getpass.getpass("Secret (leave empty to generate one): ") or SecretHasher.generate_secret()

    print("\nSecret:", secret)
    print("Hash:  ", SecretHasher.hash_secret(secret))

# How to use:
# python -m catalog_auth.adapters.outbound.security.secret_hasher
