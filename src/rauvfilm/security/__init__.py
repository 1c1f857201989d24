"""Field encryption and identity helpers."""

from rauvfilm.security.encryption import EncryptionError, FieldCipher, get_cipher, mask_name, normalize_phone

__all__ = [
    "EncryptionError",
    "FieldCipher",
    "get_cipher",
    "mask_name",
    "normalize_phone",
]
