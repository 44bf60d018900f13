# X.509 field extraction helpers

import datetime
import logging
from datetime import timezone
from typing import List, Optional, Tuple

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import dsa, ec, ed448, ed25519, rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, ExtensionOID, NameOID

logger = logging.getLogger("checkssl.lookup")

SCT_LIST_OID = x509.ObjectIdentifier("1.3.6.1.4.1.11129.2.4.2")

PEM_MARKER = b"-----BEGIN CERTIFICATE-----"


def load_certificate(data: bytes) -> x509.Certificate:
    """Load a certificate from PEM or DER bytes. Raises ValueError on bad data."""
    if PEM_MARKER in data:
        return x509.load_pem_x509_certificate(data)
    return x509.load_der_x509_certificate(data)


def as_utc(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def calculate_days_remaining(cert: x509.Certificate, now: Optional[datetime.datetime] = None) -> int:
    """Number of whole days until the certificate expires (negative once expired)."""
    now_utc = now or datetime.datetime.now(timezone.utc)
    return (as_utc(cert.not_valid_after_utc) - now_utc).days


def get_sha256_fingerprint(cert: x509.Certificate) -> str:
    """Colon separated upper-case SHA-256 fingerprint."""
    digest = cert.fingerprint(hashes.SHA256())
    return ":".join(f"{byte:02X}" for byte in digest)


def get_public_key_details(cert: x509.Certificate) -> Tuple[str, Optional[int]]:
    """Returns (algorithm name, key size in bits)."""
    public_key = cert.public_key()
    if isinstance(public_key, rsa.RSAPublicKey):
        return "RSA", public_key.key_size
    if isinstance(public_key, ec.EllipticCurvePublicKey):
        return f"ECDSA ({public_key.curve.name})", public_key.curve.key_size
    if isinstance(public_key, dsa.DSAPublicKey):
        return "DSA", public_key.key_size
    if isinstance(public_key, ed25519.Ed25519PublicKey):
        return "Ed25519", 256
    if isinstance(public_key, ed448.Ed448PublicKey):
        return "Ed448", 456
    return type(public_key).__name__, None


def get_signature_algorithm(cert: x509.Certificate) -> str:
    """Readable signature algorithm, e.g. 'sha256WithRSAEncryption'."""
    oid = cert.signature_algorithm_oid
    name = getattr(oid, "_name", None)
    if name and name != "Unknown OID":
        return name
    try:
        hash_algorithm = cert.signature_hash_algorithm
    except Exception as e:
        logger.debug(f"Unsupported signature hash algorithm {oid.dotted_string}: {e}")
        return oid.dotted_string
    if hash_algorithm is not None:
        return f"{hash_algorithm.name}-with-{oid.dotted_string}"
    return oid.dotted_string


def has_scts(cert: x509.Certificate) -> bool:
    """True when the certificate embeds Signed Certificate Timestamps."""
    try:
        cert.extensions.get_extension_for_oid(SCT_LIST_OID)
    except x509.ExtensionNotFound:
        return False
    return True


def extract_san(cert: x509.Certificate) -> List[str]:
    """DNS and IP Subject Alternative Names."""
    try:
        ext = cert.extensions.get_extension_for_oid(ExtensionOID.SUBJECT_ALTERNATIVE_NAME)
    except x509.ExtensionNotFound:
        return []
    names = ext.value.get_values_for_type(x509.DNSName)
    names.extend(str(ip) for ip in ext.value.get_values_for_type(x509.IPAddress))
    return names


def _first_attribute(name: x509.Name, oid: x509.ObjectIdentifier) -> Optional[str]:
    attributes = name.get_attributes_for_oid(oid)
    if not attributes:
        return None
    value = attributes[0].value
    return value.decode("utf-8", "replace") if isinstance(value, bytes) else value


def get_common_name(name: x509.Name) -> Optional[str]:
    return _first_attribute(name, NameOID.COMMON_NAME)


def get_organization(name: x509.Name) -> Optional[str]:
    return _first_attribute(name, NameOID.ORGANIZATION_NAME)


def get_basic_constraints(cert: x509.Certificate) -> Tuple[bool, Optional[int]]:
    """Returns (is_ca, path_length)."""
    try:
        bc = cert.extensions.get_extension_for_oid(ExtensionOID.BASIC_CONSTRAINTS).value
    except x509.ExtensionNotFound:
        return False, None
    return bc.ca, bc.path_length


_EKU_PROFILES = [
    (ExtendedKeyUsageOID.SERVER_AUTH, "TLS Server"),
    (ExtendedKeyUsageOID.CLIENT_AUTH, "TLS Client"),
    (ExtendedKeyUsageOID.EMAIL_PROTECTION, "Email Protection (S/MIME)"),
    (ExtendedKeyUsageOID.CODE_SIGNING, "Code Signing"),
    (ExtendedKeyUsageOID.TIME_STAMPING, "Time Stamping"),
    (ExtendedKeyUsageOID.OCSP_SIGNING, "OCSP Signing"),
]


def detect_profile(cert: x509.Certificate) -> str:
    """
    Guess the intended usage of a certificate from its Extended Key Usage,
    falling back to Key Usage bits when no EKU is present.
    """
    try:
        usages = list(cert.extensions.get_extension_for_oid(ExtensionOID.EXTENDED_KEY_USAGE).value)
    except x509.ExtensionNotFound:
        usages = None

    if usages is not None:
        for oid, label in _EKU_PROFILES:
            if oid in usages:
                return label
        return "Custom/Other EKU ({})".format(", ".join(oid.dotted_string for oid in usages))

    try:
        key_usage = cert.extensions.get_extension_for_oid(ExtensionOID.KEY_USAGE).value
    except x509.ExtensionNotFound:
        return "Legacy / Incomplete (No KU/EKU extensions)"
    if key_usage.key_cert_sign:
        return "CA / Certificate Signing"
    if key_usage.crl_sign:
        return "CRL Signing"
    if key_usage.digital_signature:
        return "Digital Signature (Generic)"
    return "Unknown / Undetermined"
