"""
Token generator untuk lock ownership.
"""

import secrets
import string

ALPHABET = string.ascii_letters + string.digits
TOKEN_LENGTH = 20


def generate_token(length: int = TOKEN_LENGTH) -> str:
    """
    Generate token random yang unguessable.

    20 karakter dari alphabet 62 simbol (~119 bits), pakai secrets
    supaya tidak bisa ditebak oleh acquirer lain.
    """
    return ''.join(secrets.choice(ALPHABET) for _ in range(length))
