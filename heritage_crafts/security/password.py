"""
Hachage des mots de passe (argon2 via pwdlib) + règles de robustesse.
"""

import re
from typing import List

from pwdlib import PasswordHash
from pwdlib.exceptions import UnknownHashError
from pwdlib.hashers.argon2 import Argon2Hasher

_password_hash = PasswordHash((Argon2Hasher(),))

MIN_LENGTH = 8
MAX_LENGTH = 128

COMMON_PASSWORDS = {
    "password", "123456", "123456789", "qwerty", "abc123",
    "password123", "admin", "letmein", "welcome", "12345678",
}


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("Password is required")
    return _password_hash.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    if not password or not hashed:
        return False
    try:
        return _password_hash.verify(password, hashed)
    except UnknownHashError:
        return False


def password_strength_errors(password: str) -> List[str]:
    """Retourne la liste des problèmes (vide si le mot de passe est acceptable)."""
    errors: List[str] = []
    if not password:
        return ["Password is required"]
    if len(password) < MIN_LENGTH:
        errors.append(f"Password must be at least {MIN_LENGTH} characters long")
    if len(password) > MAX_LENGTH:
        errors.append(f"Password must be at most {MAX_LENGTH} characters long")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")
    if password.lower() in COMMON_PASSWORDS:
        errors.append("Password is too common, please choose a stronger password")
    return errors
