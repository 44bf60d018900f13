# src/check_ssl_web/cert_lookup.py

"""
Certificate lookup: connect to a domain over TLS, verify it against the system
trust store and describe the certificate it presents.

A lookup either returns a CertificateInfo or raises CertificateLookupError
with a message suitable for showing to the user.
"""

import datetime
import logging
import socket
import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from datetime import timezone
from typing import List, Optional, Tuple

from cryptography import x509
from cryptography.x509.oid import AuthorityInformationAccessOID, ExtensionOID

from check_ssl_web.utils.cert_utils import (
    as_utc,
    calculate_days_remaining,
    detect_profile,
    extract_san,
    get_basic_constraints,
    get_common_name,
    get_organization,
    get_public_key_details,
    get_sha256_fingerprint,
    get_signature_algorithm,
    has_scts,
    load_certificate,
)
from check_ssl_web.utils.domain_utils import parse_domain_entry

# --- Configuration ---
DEFAULT_PORT = 443
DEFAULT_TIMEOUT = 10.0
AIA_TIMEOUT = 10
MAX_INTERMEDIATES = 4
USER_AGENT = "Python-CheckSSL-Web/1.0"
AIA_CONTENT_TYPES = (
    "application/pkix-cert",
    "application/x-x509-ca-cert",
    "application/octet-stream",
)

logger = logging.getLogger("checkssl.lookup")


class CertificateLookupError(Exception):
    """Raised when the certificate of a domain cannot be retrieved or parsed."""

    def __init__(self, domain: str, message: str):
        super().__init__(message)
        self.domain = domain
        self.message = message


@dataclass(frozen=True)
class CertificateDetails:
    subject: str
    issuer: str
    common_name: Optional[str]
    organization: Optional[str]
    serial_number: str
    version: str
    not_before: datetime.datetime
    not_after: datetime.datetime
    days_remaining: int
    sha256_fingerprint: str
    signature_algorithm: str
    public_key_algorithm: str
    public_key_size_bits: Optional[int]
    profile: str
    san: Tuple[str, ...]
    has_scts: bool
    is_ca: bool
    path_length_constraint: Optional[int]

    @property
    def is_expired(self) -> bool:
        return self.days_remaining < 0


@dataclass(frozen=True)
class CertificateInfo:
    domain: str
    port: int
    tls_version: Optional[str]
    cipher_suite: Optional[str]
    server: CertificateDetails
    chain: Tuple[CertificateDetails, ...] = ()
    checked_at: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(timezone.utc))


def describe_certificate(cert: x509.Certificate) -> CertificateDetails:
    """Build a CertificateDetails from a parsed certificate."""
    key_algorithm, key_size = get_public_key_details(cert)
    is_ca, path_length = get_basic_constraints(cert)
    return CertificateDetails(
        subject=cert.subject.rfc4514_string(),
        issuer=cert.issuer.rfc4514_string(),
        common_name=get_common_name(cert.subject),
        organization=get_organization(cert.subject),
        serial_number=format(cert.serial_number, "X"),
        version=cert.version.name,
        not_before=as_utc(cert.not_valid_before_utc),
        not_after=as_utc(cert.not_valid_after_utc),
        days_remaining=calculate_days_remaining(cert),
        sha256_fingerprint=get_sha256_fingerprint(cert),
        signature_algorithm=get_signature_algorithm(cert),
        public_key_algorithm=key_algorithm,
        public_key_size_bits=key_size,
        profile=detect_profile(cert),
        san=tuple(extract_san(cert)),
        has_scts=has_scts(cert),
        is_ca=is_ca,
        path_length_constraint=path_length,
    )


def fetch_leaf_certificate(host: str, port: int, timeout: float) -> Tuple[x509.Certificate, Optional[str], Optional[str]]:
    """
    Perform a verified TLS handshake with host:port and return
    (leaf certificate, TLS version, cipher suite).

    Every failure is raised as CertificateLookupError.
    """
    target = f"{host}:{port}"
    logger.debug(f"Connecting to {target} to fetch certificate...")
    context = ssl.create_default_context()
    context.minimum_version = ssl.TLSVersion.TLSv1_2

    try:
        with socket.create_connection((host, port), timeout=timeout) as sock:
            with context.wrap_socket(sock, server_hostname=host) as ssock:
                tls_version = ssock.version()
                cipher = ssock.cipher()
                der_cert = ssock.getpeercert(binary_form=True)
    except socket.timeout:
        raise CertificateLookupError(host, f"Connection to {target} timed out.")
    except ssl.SSLCertVerificationError as e:
        reason = getattr(e, "verify_message", None) or getattr(e, "reason", None) or str(e)
        raise CertificateLookupError(host, f"SSL certificate verification failed for {host}: {reason}.")
    except ssl.SSLError as e:
        reason = getattr(e, "reason", None) or str(e)
        raise CertificateLookupError(host, f"An SSL error occurred connecting to {target}: {reason}")
    except ConnectionRefusedError:
        raise CertificateLookupError(host, f"Connection refused by {target}.")
    except socket.gaierror:
        raise CertificateLookupError(host, f"Could not resolve domain name: {host}")
    except OSError as e:
        raise CertificateLookupError(host, f"Network/OS error connecting to {target}: {e}")
    except ValueError as e:
        raise CertificateLookupError(host, f"Invalid domain name {host}: {e}")
    except Exception as e:
        logger.exception(f"Unexpected error fetching leaf certificate from {target}: {e}")
        raise CertificateLookupError(
            host, f"An unexpected error occurred during connection/certificate fetch for {target}: {e}")

    if not der_cert:
        raise CertificateLookupError(host, f"No certificate received from server {target}.")
    try:
        cert = x509.load_der_x509_certificate(der_cert)
    except ValueError as e:
        raise CertificateLookupError(host, f"Could not parse certificate from {target}: {e}")

    logger.info(f"Fetched leaf certificate from {target} (TLS={tls_version})")
    return cert, tls_version, cipher[0] if cipher else None


def fetch_intermediate_certificates(cert: x509.Certificate) -> List[x509.Certificate]:
    """
    Follow Authority Information Access CA Issuers URLs up the chain.
    Best effort: any failure is logged and ends the walk.
    """
    intermediates = []
    seen_urls = set()
    current = cert

    while len(intermediates) < MAX_INTERMEDIATES:
        url = _ca_issuers_url(current)
        if url is None or url in seen_urls:
            break
        seen_urls.add(url)
        issuer = _download_certificate(url)
        if issuer is None:
            break
        intermediates.append(issuer)
        if issuer.subject == issuer.issuer:
            break
        current = issuer
    return intermediates


def _ca_issuers_url(cert: x509.Certificate) -> Optional[str]:
    try:
        aia = cert.extensions.get_extension_for_oid(ExtensionOID.AUTHORITY_INFORMATION_ACCESS).value
    except x509.ExtensionNotFound:
        logger.debug("No AIA extension found in the certificate to fetch intermediates.")
        return None
    for description in aia:
        if (description.access_method == AuthorityInformationAccessOID.CA_ISSUERS
                and isinstance(description.access_location, x509.UniformResourceIdentifier)
                and description.access_location.value.startswith(("http://", "https://"))):
            return description.access_location.value
    return None


def _download_certificate(url: str) -> Optional[x509.Certificate]:
    logger.info(f"Fetching intermediate certificate from AIA URL: {url}")
    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    try:
        with urllib.request.urlopen(req, timeout=AIA_TIMEOUT) as response:
            content_type = response.info().get_content_type().lower()
            data = response.read()
    except (urllib.error.URLError, socket.timeout, OSError) as e:
        logger.warning(f"Failed to fetch intermediate certificate from {url}: {e}")
        return None

    if content_type not in AIA_CONTENT_TYPES:
        logger.warning(f"Unexpected content type '{content_type}' for intermediate certificate at {url}")
        return None
    try:
        return load_certificate(data)
    except ValueError as e:
        logger.warning(f"Could not parse certificate data from {url}: {e}")
        return None


def lookup(domain: str, port: int = DEFAULT_PORT, timeout: float = DEFAULT_TIMEOUT,
           fetch_intermediates: bool = True) -> CertificateInfo:
    """
    Retrieve and describe the TLS certificate served for a domain.

    Parameters:
        domain (str): host name, 'host:port' or URL as typed by the user.
        port (int): port used when the entry does not carry one.
        timeout (float): socket timeout in seconds for the TLS connection.
        fetch_intermediates (bool): also describe the issuing chain via AIA.

    Returns:
        CertificateInfo

    Raises:
        CertificateLookupError: on any resolution, connection, TLS or parse failure.
    """
    host, port = parse_domain_entry(domain, default_port=port)
    if not host:
        raise CertificateLookupError(domain, "Domain name is empty")

    leaf, tls_version, cipher_suite = fetch_leaf_certificate(host, port, timeout)
    try:
        server = describe_certificate(leaf)
    except Exception as e:
        logger.exception(f"Failed to analyze certificate for {host}")
        raise CertificateLookupError(host, f"Failed to parse certificate details: {e}")

    chain = []
    if fetch_intermediates:
        for intermediate in fetch_intermediate_certificates(leaf):
            try:
                chain.append(describe_certificate(intermediate))
            except Exception as e:
                logger.warning(f"Skipping unreadable intermediate certificate for {host}: {e}")

    return CertificateInfo(
        domain=host,
        port=port,
        tls_version=tls_version,
        cipher_suite=cipher_suite,
        server=server,
        chain=tuple(chain),
    )
