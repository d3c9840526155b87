import hashlib

import pytest

from openwings.auth.passwords import hash_password, split_stored_password, verify_password
from openwings.core.errors import InvalidCredentialFormat

VALID_SALT = '00112233445566778899aabbccddeeff'
VALID_HASH = 'ab' * 64


def test_hash_password_returns_hex_salt_and_hash() -> None:
    stored = hash_password('S3cret!')
    salt, hashed = stored.split(':')

    assert len(salt) == 32
    assert len(hashed) == 128
    int(salt, 16)
    int(hashed, 16)


def test_hash_password_uses_fresh_salt_each_time() -> None:
    assert hash_password('S3cret!') != hash_password('S3cret!')


@pytest.mark.parametrize('password', ['S3cret!', '', 'pässwörd', 'a' * 200])
def test_verify_password_accepts_original_password(password: str) -> None:
    assert verify_password(hash_password(password), password) is True


def test_verify_password_rejects_other_password() -> None:
    stored = hash_password('S3cret!')

    assert verify_password(stored, 'S3cret?') is False
    assert verify_password(stored, 's3cret!') is False


def test_verify_password_uses_hex_salt_text_as_scrypt_salt() -> None:
    # Salt is used as its hex text, not the decoded bytes.
    salt = '00112233445566778899aabbccddeeff'
    expected = hashlib.scrypt(b'S3cret!', salt=salt.encode(), n=16384, r=8, p=1, dklen=64).hex()

    assert verify_password(f'{salt}:{expected}', 'S3cret!') is True


@pytest.mark.parametrize('stored', [
    '',
    'no-separator',
    ':abcdef',
    'abcdef:',
    f'{VALID_SALT}:{"zz" * 64}',
    f'{VALID_SALT}:{"é" * 128}',
    f'{"é" * 32}:{VALID_HASH}',
    'abcd:héllo',
    f'{VALID_SALT}:{VALID_HASH[:-2]}',
    f'{VALID_SALT[:-2]}:{VALID_HASH}',
    f'{VALID_SALT}:{VALID_HASH}:extra',
])
def test_verify_password_rejects_malformed_stored_value(stored: str) -> None:
    with pytest.raises(InvalidCredentialFormat):
        verify_password(stored, 'S3cret!')


def test_split_stored_password_returns_salt_text_and_digest_bytes() -> None:
    salt, digest = split_stored_password(f'{VALID_SALT}:{VALID_HASH}')

    assert salt == VALID_SALT
    assert digest == bytes.fromhex(VALID_HASH)
