"""Field-level encryption for customer identity data.

Names and phone numbers are stored as Fernet ciphertext and only decrypted
in-process (referral code minting, booking promotion, masked display).
"""

import base64
from functools import lru_cache

import phonenumbers
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from rauvfilm.settings import settings


class EncryptionError(Exception):
    """Raised when a stored value cannot be decrypted."""
    pass


class FieldCipher:
    """Encrypts and decrypts identity columns.

    Values carry an ``ENC:`` prefix so legacy plaintext rows can be read
    as-is and re-encryption is a no-op.
    """

    ENCRYPTED_PREFIX = "ENC:"

    def __init__(self, secret: str | None = None, salt: str | None = None):
        self._secret = secret or settings.encryption_secret
        self._salt = (salt or settings.encryption_salt).encode()
        self._fernet = self._create_cipher()

    def _create_cipher(self) -> Fernet:
        """Create Fernet cipher from derived key."""
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=self._salt,
            iterations=100_000,
        )
        key = base64.urlsafe_b64encode(kdf.derive(self._secret.encode()))
        return Fernet(key)

    def encrypt(self, plaintext: str | None) -> str | None:
        """Encrypt a value. Blank values are stored as NULL."""
        if plaintext is None or not plaintext.strip():
            return None
        if plaintext.startswith(self.ENCRYPTED_PREFIX):
            return plaintext
        token = self._fernet.encrypt(plaintext.encode())
        return f"{self.ENCRYPTED_PREFIX}{token.decode()}"

    def decrypt(self, value: str | None) -> str | None:
        """Decrypt a value; plaintext without the prefix is returned unchanged."""
        if not value:
            return value
        if not value.startswith(self.ENCRYPTED_PREFIX):
            return value
        try:
            return self._fernet.decrypt(value[len(self.ENCRYPTED_PREFIX):].encode()).decode()
        except InvalidToken as e:
            raise EncryptionError("Decryption failed: invalid token or key") from e


@lru_cache(maxsize=1)
def get_cipher() -> FieldCipher:
    """Shared cipher built from settings (key derivation runs once)."""
    return FieldCipher()


def normalize_phone(phone: str | None, region: str = "KR") -> str | None:
    """Normalize a phone number to national digits (e.g. ``01012345678``).

    Numbers that do not parse fall back to their digits only.
    """
    if not phone:
        return None
    try:
        parsed = phonenumbers.parse(phone, region)
        if phonenumbers.is_possible_number(parsed):
            national = phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.NATIONAL)
            return "".join(ch for ch in national if ch.isdigit())
    except phonenumbers.NumberParseException:
        pass
    digits = "".join(ch for ch in phone if ch.isdigit())
    return digits or None


def mask_name(name: str | None) -> str:
    """Mask the second character of a name (홍길동 -> 홍*동)."""
    if not name:
        return ""
    if len(name) <= 2:
        return name[0] + "*"
    return name[0] + "*" + name[2:]
