"""
Enumerations used in GnuPG options and in colon-delimited key listings.
"""

from __future__ import annotations

from enum import Enum, Flag
from typing import Optional


class TrustModel(Enum):
    """Values accepted by ``--trust-model``."""
    PGP = "pgp"
    CLASSIC = "classic"
    DIRECT = "direct"
    ALWAYS = "always"
    AUTO = "auto"


class Validity(Enum):
    UNKNOWN = "unknown"
    INVALID = "invalid"
    DISABLED = "disabled"
    REVOKED = "revoked"
    EXPIRED = "expired"
    VALID = "valid"
    MARGINALLY_VALID = "marginally_valid"
    FULLY_VALID = "fully_valid"
    ULTIMATELY_VALID = "ultimately_valid"
    NEW = "new"

    @classmethod
    def from_field(cls, value: Optional[str]) -> "Validity":
        return _VALIDITY_CODES.get(value or "", cls.UNKNOWN)


_VALIDITY_CODES = {
    "o": Validity.NEW,
    "i": Validity.INVALID,
    "d": Validity.DISABLED,
    "r": Validity.REVOKED,
    "e": Validity.EXPIRED,
    "n": Validity.VALID,
    "m": Validity.MARGINALLY_VALID,
    "f": Validity.FULLY_VALID,
    "u": Validity.ULTIMATELY_VALID,
}


class Algorithm(Enum):
    """Public key algorithms, valued by their OpenPGP identifiers."""
    UNKNOWN = 0
    RSA = 1
    ELGAMAL = 16
    DSA = 17
    ELGAMAL_SIGN_AND_ENCRYPT = 20

    @classmethod
    def from_field(cls, value: Optional[str]) -> "Algorithm":
        try:
            return cls(int(value or ""))
        except ValueError:
            return cls.UNKNOWN


class RecordType(Enum):
    """Record types of ``--with-colons`` output, valued by their tag."""
    UNKNOWN = ""
    PUBLIC_KEY = "pub"
    X509_CERTIFICATE = "crt"
    X509_CERTIFICATE_PRIVATE_KEY = "crs"
    PUBLIC_SUB_KEY = "sub"
    SECRET_KEY = "sec"
    SECRET_SUB_KEY = "ssb"
    USER_ID = "uid"
    USER_ATTRIBUTE = "uat"
    SIGNATURE = "sig"
    REVOCATION_CERTIFICATE = "rev"
    FINGERPRINT = "fpr"
    PUBLIC_KEY_DATA = "pkd"
    KEY_GRIP = "grp"
    REVOCATION_KEY = "rvk"
    TRUST_RECORD = "tru"
    SIGNATURE_SUBPACKET = "spk"

    @classmethod
    def from_field(cls, value: Optional[str]) -> "RecordType":
        try:
            return cls(value or "")
        except ValueError:
            return cls.UNKNOWN


class KeyCapabilities(Flag):
    NONE = 0
    ENCRYPTION = 0x01
    SIGNING = 0x02
    CERTIFICATION = 0x04
    AUTHENTICATION = 0x08
    DISABLED = 0x10

    @classmethod
    def from_field(cls, value: Optional[str]) -> "KeyCapabilities":
        """Parse a capability field such as ``scESC``; only lowercase letters and ``D`` count."""
        caps = cls.NONE
        if not value:
            return caps
        for letter, flag in _CAPABILITY_LETTERS.items():
            if letter in value:
                caps |= flag
        return caps


_CAPABILITY_LETTERS = {
    "e": KeyCapabilities.ENCRYPTION,
    "s": KeyCapabilities.SIGNING,
    "c": KeyCapabilities.CERTIFICATION,
    "a": KeyCapabilities.AUTHENTICATION,
    "D": KeyCapabilities.DISABLED,
}
