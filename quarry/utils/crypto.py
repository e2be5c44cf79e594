import hashlib
import hmac
import json
import base64
import secrets
from typing import Optional
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..exceptions import ConfigurationError

NANOID_ALPHABET = "_-0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"


class CryptoUtils:
    """Encryption of stored connection details and API key hashing"""

    def __init__(self, api_key_secret: str, encryption_secret_key: Optional[str] = None):
        self.api_key_secret = api_key_secret
        self.fernet: Optional[Fernet] = None
        if encryption_secret_key:
            if len(encryption_secret_key) < 16:
                raise ConfigurationError("ENCRYPTION_SECRET_KEY must be at least 16 characters")
            self.fernet = Fernet(self._derive_fernet_key(encryption_secret_key))

    @classmethod
    def from_settings(cls, settings) -> "CryptoUtils":
        return cls(settings.api_key_secret, settings.encryption_secret_key)

    @property
    def can_encrypt(self) -> bool:
        return self.fernet is not None

    def _derive_fernet_key(self, password: str, salt: bytes = b"quarry_details_salt") -> bytes:
        """Derive Fernet key from password"""
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt,
            iterations=100000,
        )
        return base64.urlsafe_b64encode(kdf.derive(password.encode()))

    def encrypt(self, data: str) -> str:
        """Encrypt string data; plaintext passes through when no key is configured"""
        if self.fernet is None:
            return data
        return self.fernet.encrypt(data.encode()).decode()

    def decrypt(self, data: str) -> str:
        """Decrypt string data; JSON stored before a key was set comes back unchanged"""
        if self.fernet is None:
            return data
        try:
            return self.fernet.decrypt(data.encode()).decode()
        except InvalidToken:
            try:
                json.loads(data)
            except ValueError:
                raise ConfigurationError(
                    "Stored value cannot be decrypted; check ENCRYPTION_SECRET_KEY"
                ) from None
            return data

    def hash_api_key(self, api_key: str) -> str:
        """Hash API key for storage"""
        hmac_obj = hmac.new(
            self.api_key_secret.encode(),
            api_key.encode(),
            hashlib.sha256
        )
        return hmac_obj.hexdigest()

    def verify_api_key(self, api_key: str, stored_hash: str) -> bool:
        """Verify API key against stored hash"""
        computed_hash = self.hash_api_key(api_key)
        return hmac.compare_digest(computed_hash, stored_hash)

    @staticmethod
    def generate_api_key(length: int = 32) -> str:
        """Generate secure random API key"""
        alphabet = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
        return "qry_" + ''.join(secrets.choice(alphabet) for _ in range(length))


def generate_entity_id(length: int = 21) -> str:
    """NanoID-style portable identifier used by serialization"""
    return ''.join(secrets.choice(NANOID_ALPHABET) for _ in range(length))
