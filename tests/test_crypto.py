import base64

import pytest

from app.core.crypto import NONCE_LENGTH, SALT_LENGTH, DecryptionFailed, FieldCipher

SECRET = "test-encryption-key-famli"


def flip_byte(token: str, index: int) -> str:
    data = bytearray(base64.b64decode(token))
    data[index] ^= 0x01
    return base64.b64encode(bytes(data)).decode("ascii")


@pytest.mark.parametrize("plaintext", [
    "Senha do banco fica na gaveta azul",
    "Ação, emoção e coração 💙",
    "",
    "x" * 10000,
])
def test_round_trip(cipher, plaintext):
    assert cipher.decrypt(cipher.encrypt(plaintext)) == plaintext


def test_same_plaintext_never_repeats_ciphertext(cipher):
    first = cipher.encrypt("mesmo texto")
    second = cipher.encrypt("mesmo texto")

    assert first != second
    # nonce também é diferente
    assert base64.b64decode(first)[:NONCE_LENGTH] != base64.b64decode(second)[:NONCE_LENGTH]


def test_layout_is_nonce_ciphertext_tag(cipher):
    data = base64.b64decode(cipher.encrypt("abc"))
    assert len(data) == NONCE_LENGTH + 3 + 16


@pytest.mark.parametrize("index", [0, NONCE_LENGTH, NONCE_LENGTH + 2, -1])
def test_tampering_any_region_fails(cipher, index):
    token = cipher.encrypt("conteúdo sensível")
    with pytest.raises(DecryptionFailed):
        cipher.decrypt(flip_byte(token, index))


@pytest.mark.parametrize("token", [
    "não é base64!!",
    base64.b64encode(b"curto").decode(),
    "",
])
def test_malformed_input_fails_with_same_error(cipher, token):
    with pytest.raises(DecryptionFailed) as exc_info:
        cipher.decrypt(token)
    assert str(exc_info.value) == "decryption failed"


def test_truncated_ciphertext_fails(cipher):
    data = base64.b64decode(cipher.encrypt("conteúdo sensível"))
    with pytest.raises(DecryptionFailed):
        cipher.decrypt(base64.b64encode(data[:-4]).decode())


def test_same_secret_and_salt_decrypts(cipher):
    restored = FieldCipher.from_salt(SECRET, cipher.salt)
    assert restored.decrypt(cipher.encrypt("guardado")) == "guardado"


def test_wrong_secret_or_salt_fails(cipher):
    token = cipher.encrypt("guardado")

    with pytest.raises(DecryptionFailed):
        FieldCipher.from_salt("another-secret-key-value", cipher.salt).decrypt(token)

    other_salt = bytes((b + 1) % 256 for b in cipher.salt)
    with pytest.raises(DecryptionFailed):
        FieldCipher.from_salt(SECRET, other_salt).decrypt(token)


def test_rejects_short_secret_and_bad_salt():
    with pytest.raises(ValueError):
        FieldCipher("curta", b"\x00" * SALT_LENGTH)
    with pytest.raises(ValueError):
        FieldCipher(SECRET, b"\x00" * 8)


def test_optional_helpers_skip_empty_values(cipher):
    assert cipher.encrypt_optional(None) is None
    assert cipher.decrypt_optional(None) is None

    token = cipher.encrypt_optional("nota")
    assert token != "nota"
    assert cipher.decrypt_optional(token) == "nota"


def test_salt_is_persisted_once(store):
    salt = store.load_or_create_field_salt()

    assert len(salt) == SALT_LENGTH
    assert store.load_or_create_field_salt() == salt
