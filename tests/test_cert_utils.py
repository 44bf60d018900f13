"""
Tests for the X.509 helper functions.
"""
import unittest

from check_ssl_web.utils import cert_utils
from check_ssl_web.utils.domain_utils import parse_domain_entry
from tests.cert_factory import create_ca, create_server_cert, to_der, to_pem


class TestCertUtils(unittest.TestCase):
    """Field extraction from generated certificates."""

    @classmethod
    def setUpClass(cls):
        cls.ca_cert, cls.ca_key = create_ca()
        cls.server_cert = create_server_cert(cls.ca_cert, cls.ca_key)

    def test_load_certificate_accepts_der_and_pem(self):
        from_der = cert_utils.load_certificate(to_der(self.server_cert))
        from_pem = cert_utils.load_certificate(to_pem(self.server_cert))
        self.assertEqual(from_der, self.server_cert)
        self.assertEqual(from_pem, self.server_cert)

    def test_load_certificate_rejects_garbage(self):
        with self.assertRaises(ValueError):
            cert_utils.load_certificate(b"not a certificate")

    def test_days_remaining(self):
        self.assertIn(cert_utils.calculate_days_remaining(self.server_cert), (89, 90))

    def test_days_remaining_negative_when_expired(self):
        expired = create_server_cert(self.ca_cert, self.ca_key, days_valid=-5)
        self.assertLess(cert_utils.calculate_days_remaining(expired), 0)

    def test_sha256_fingerprint_format(self):
        fingerprint = cert_utils.get_sha256_fingerprint(self.server_cert)
        parts = fingerprint.split(":")
        self.assertEqual(len(parts), 32)
        self.assertEqual(fingerprint, fingerprint.upper())

    def test_public_key_details(self):
        self.assertEqual(cert_utils.get_public_key_details(self.server_cert), ("ECDSA (secp256r1)", 256))
        self.assertEqual(cert_utils.get_public_key_details(self.ca_cert), ("RSA", 2048))

    def test_signature_algorithm(self):
        self.assertEqual(cert_utils.get_signature_algorithm(self.server_cert), "sha256WithRSAEncryption")

    def test_san_includes_dns_and_ip_names(self):
        self.assertEqual(
            cert_utils.extract_san(self.server_cert),
            ["example.com", "www.example.com", "192.0.2.1"],
        )
        self.assertEqual(cert_utils.extract_san(self.ca_cert), [])

    def test_names(self):
        self.assertEqual(cert_utils.get_common_name(self.server_cert.subject), "example.com")
        self.assertIsNone(cert_utils.get_organization(self.server_cert.subject))
        self.assertEqual(cert_utils.get_organization(self.ca_cert.subject), "Test Org")

    def test_basic_constraints(self):
        self.assertEqual(cert_utils.get_basic_constraints(self.ca_cert), (True, 0))
        self.assertEqual(cert_utils.get_basic_constraints(self.server_cert), (False, None))

    def test_detect_profile(self):
        self.assertEqual(cert_utils.detect_profile(self.server_cert), "TLS Server")
        self.assertEqual(cert_utils.detect_profile(self.ca_cert), "CA / Certificate Signing")

    def test_has_no_scts(self):
        self.assertFalse(cert_utils.has_scts(self.server_cert))


class TestParseDomainEntry(unittest.TestCase):
    """Splitting user input into host and port."""

    def test_bare_host(self):
        self.assertEqual(parse_domain_entry("example.com"), ("example.com", 443))

    def test_surrounding_whitespace(self):
        self.assertEqual(parse_domain_entry("  example.com \n"), ("example.com", 443))

    def test_host_with_port(self):
        self.assertEqual(parse_domain_entry("example.com:8443"), ("example.com", 8443))

    def test_url(self):
        self.assertEqual(parse_domain_entry("https://Example.com/some/path?x=1"), ("example.com", 443))

    def test_default_port_override(self):
        self.assertEqual(parse_domain_entry("example.com", default_port=993), ("example.com", 993))

    def test_invalid_port_falls_back_to_default(self):
        self.assertEqual(parse_domain_entry("example.com:abc"), ("example.com", 443))
        self.assertEqual(parse_domain_entry("example.com:99999"), ("example.com", 443))

    def test_unbalanced_ipv6_bracket_is_kept_as_host(self):
        self.assertEqual(parse_domain_entry("[::1"), ("[::1", 443))
        self.assertEqual(parse_domain_entry("[::1:8443"), ("[::1:8443", 443))

    def test_empty(self):
        self.assertEqual(parse_domain_entry("   "), ("", 443))


if __name__ == '__main__':
    unittest.main()
