import hashlib
import hmac
import re
import secrets

from openwings.core.errors import InvalidCredentialFormat

SALT_BYTES = 16
KEY_LENGTH = 64
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
SEPARATOR = ':'

_SALT_PATTERN = re.compile(rf'[0-9a-fA-F]{{{SALT_BYTES * 2}}}')
_HASH_PATTERN = re.compile(rf'[0-9a-fA-F]{{{KEY_LENGTH * 2}}}')


def _derive(password: str, salt: str) -> bytes:
    return hashlib.scrypt(
        password.encode('utf-8'),
        salt=salt.encode('utf-8'),
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=KEY_LENGTH,
    )


def hash_password(password: str) -> str:
    """Return ``salt:hash`` with a fresh hex salt and a hex scrypt digest."""
    salt = secrets.token_hex(SALT_BYTES)
    return f'{salt}{SEPARATOR}{_derive(password, salt).hex()}'


def split_stored_password(stored: str) -> tuple[str, bytes]:
    """Split a stored ``salt:hash`` value into the salt text and digest bytes.

    The salt must be 32 hex characters and the hash 128, otherwise
    ``InvalidCredentialFormat`` is raised.
    """
    salt, separator, expected = (stored or '').partition(SEPARATOR)
    if not separator or not _SALT_PATTERN.fullmatch(salt) or not _HASH_PATTERN.fullmatch(expected):
        raise InvalidCredentialFormat('Stored password is not in salt:hash form')
    return salt, bytes.fromhex(expected)


def verify_password(stored: str, attempt: str) -> bool:
    salt, expected = split_stored_password(stored)
    return hmac.compare_digest(_derive(attempt, salt), expected)
