"""
auth/passwords.py -- Credential Hasher: salted scrypt password hashing.

Security design decisions:
  KDF: scrypt (memory-hard) with N=2**14, r=8, p=1 and a 64-byte digest.
       Each hash gets a fresh 16-byte random salt from secrets.token_hex().
       Called through hashlib directly, not bcrypt or a passlib CryptContext:
       neither produces this storage format, and existing
       "<digest hex>.<salt hex>" hashes must keep verifying.

  Encoding: "<digest hex>.<salt hex>". "." is outside the hex alphabet, so
       the split back into digest and salt is unambiguous. The salt is fed to
       scrypt as its hex text, which keeps hashes produced by the previous
       Node.js deployment verifiable.

  Comparison: hmac.compare_digest, never ==, so response time does not leak
       how many leading bytes matched.

  Failure: verify_password() fails closed. A stored value that cannot be
       parsed is a verification failure, not an exception. hash_password()
       lets an entropy failure from secrets propagate; there is no retry.

  Timing equalization: _DUMMY_HASH is computed once at import so a login for
       an unknown username still pays for one full scrypt derivation.

Layer rule: no imports from api/, web/, or contact/.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets

_SCRYPT_N = 2**14
_SCRYPT_R = 8
_SCRYPT_P = 1
_DIGEST_BYTES = 64
_SALT_BYTES = 16
_SEPARATOR = "."
# scrypt needs 128 * N * r bytes; leave headroom above OpenSSL's 32 MiB default cap.
_SCRYPT_MAXMEM = 64 * 1024 * 1024


def _derive(plain: str, salt: str) -> bytes:
    return hashlib.scrypt(
        plain.encode("utf-8", "surrogatepass"),
        salt=salt.encode("ascii"),
        n=_SCRYPT_N,
        r=_SCRYPT_R,
        p=_SCRYPT_P,
        maxmem=_SCRYPT_MAXMEM,
        dklen=_DIGEST_BYTES,
    )


def hash_password(plain: str) -> str:
    """Return the storable representation of plain: "<digest hex>.<salt hex>"."""
    salt = secrets.token_hex(_SALT_BYTES)
    return f"{_derive(plain, salt).hex()}{_SEPARATOR}{salt}"


def verify_password(plain: str, stored: str | None) -> bool:
    """Return True if plain matches the stored representation. Never raises."""
    if not stored:
        return False
    digest_hex, sep, salt = stored.partition(_SEPARATOR)
    if not sep or not salt or _SEPARATOR in salt:
        return False
    try:
        expected = bytes.fromhex(digest_hex)
        bytes.fromhex(salt)
    except ValueError:
        return False
    if len(expected) != _DIGEST_BYTES:
        return False
    return hmac.compare_digest(expected, _derive(plain, salt))


_DUMMY_HASH: str = hash_password("lrm2e_timing_dummy")


def verify_dummy(plain: str) -> None:
    """Burn one verification's worth of work against a hash no account owns."""
    verify_password(plain, _DUMMY_HASH)
