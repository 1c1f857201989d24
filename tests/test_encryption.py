import pytest

from rauvfilm.security.encryption import EncryptionError, FieldCipher, mask_name, normalize_phone


@pytest.fixture
def cipher():
    return FieldCipher(secret="test-secret-value", salt="test-salt")


def test_round_trip(cipher):
    token = cipher.encrypt("홍길동")

    assert token.startswith(FieldCipher.ENCRYPTED_PREFIX)
    assert "홍길동" not in token
    assert cipher.decrypt(token) == "홍길동"


def test_blank_values_stored_as_null(cipher):
    assert cipher.encrypt(None) is None
    assert cipher.encrypt("   ") is None


def test_encrypt_is_not_applied_twice(cipher):
    token = cipher.encrypt("01012345678")
    assert cipher.encrypt(token) == token


def test_plaintext_passes_through_decrypt(cipher):
    assert cipher.decrypt("legacy plaintext") == "legacy plaintext"
    assert cipher.decrypt(None) is None


def test_wrong_key_fails(cipher):
    token = cipher.encrypt("홍길동")
    other = FieldCipher(secret="another-secret", salt="test-salt")

    with pytest.raises(EncryptionError):
        other.decrypt(token)


def test_mask_name():
    assert mask_name("홍길동") == "홍*동"
    assert mask_name("남궁민수") == "남*민수"
    assert mask_name("김수") == "김*"
    assert mask_name("") == ""
    assert mask_name(None) == ""


@pytest.mark.parametrize(
    "raw",
    ["010-1234-5678", "01012345678", "+82 10-1234-5678", "010 1234 5678"],
)
def test_normalize_phone(raw):
    assert normalize_phone(raw) == "01012345678"


def test_normalize_phone_empty():
    assert normalize_phone(None) is None
    assert normalize_phone("") is None
    assert normalize_phone("no digits") is None
