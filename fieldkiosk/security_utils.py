"""
Encryption helpers for employee personal information

Social security numbers never reach either database in clear text; they
are Fernet-encrypted on write and decrypted on read.
"""

import base64
import hashlib
import logging
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from .config import DATA_ENCRYPTION_KEY, SECRET_KEY

logger = logging.getLogger(__name__)

ENCRYPTED_PREFIX = "enc:"
SENSITIVE_FIELDS = ("ssn",)


def _build_cipher() -> Fernet:
    if DATA_ENCRYPTION_KEY:
        return Fernet(DATA_ENCRYPTION_KEY.encode())
    # Derive a valid Fernet key from SECRET_KEY
    digest = hashlib.sha256(SECRET_KEY.encode()).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


cipher_suite = _build_cipher()


def encrypt_value(value: str) -> str:
    if value.startswith(ENCRYPTED_PREFIX):
        return value
    return ENCRYPTED_PREFIX + cipher_suite.encrypt(value.encode()).decode()


def decrypt_value(value: str) -> str:
    if not value.startswith(ENCRYPTED_PREFIX):
        return value
    return cipher_suite.decrypt(value[len(ENCRYPTED_PREFIX):].encode()).decode()


def encrypt_personal_info(personal_info: Optional[dict]) -> Optional[dict]:
    if not personal_info:
        return personal_info
    result = dict(personal_info)
    for field in SENSITIVE_FIELDS:
        if result.get(field):
            result[field] = encrypt_value(str(result[field]))
    return result


def decrypt_personal_info(personal_info: Optional[dict]) -> Optional[dict]:
    if not personal_info:
        return personal_info
    result = dict(personal_info)
    for field in SENSITIVE_FIELDS:
        if result.get(field):
            try:
                result[field] = decrypt_value(str(result[field]))
            except InvalidToken:
                logger.error(f"❌ Could not decrypt personal info field '{field}' (key rotated?)")
                result[field] = None
    return result


def mask_ssn(ssn: Optional[str]) -> Optional[str]:
    if not ssn:
        return ssn
    digits = "".join(c for c in ssn if c.isdigit())
    return f"***-**-{digits[-4:]}" if len(digits) >= 4 else "***"
