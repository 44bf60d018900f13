# src/check_ssl_web/__init__.py

"""Small web front-end reporting the TLS certificate of a domain."""

__version__ = "1.0.0"
