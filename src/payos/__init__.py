"""
Public facade for the payOS client package.

The module re-exports the most useful pieces for integrators so they can
``from payos import ...`` without navigating the package.
"""

from ._version import __version__
from .api import create_client
from .core import (
    ClientParameters,
    ConfigError,
    ErrorCategory,
    ErrorKind,
    FileDownload,
    HeaderSignatureOptions,
    Page,
    Pagination,
    PayOSClient,
    PayOSConfig,
    PayOSError,
    RequestOptions,
    RequestSignature,
    ResponseSignature,
    RetryPolicy,
    SignatureConfig,
    Signer,
    build_page,
    create_idempotency_key,
    load_config,
    sign_body,
    sign_header,
    sign_payment_request,
    verify,
)

__all__ = (
    "__version__",
    "ClientParameters",
    "ConfigError",
    "ErrorCategory",
    "ErrorKind",
    "FileDownload",
    "HeaderSignatureOptions",
    "Page",
    "Pagination",
    "PayOSClient",
    "PayOSConfig",
    "PayOSError",
    "RequestOptions",
    "RequestSignature",
    "ResponseSignature",
    "RetryPolicy",
    "SignatureConfig",
    "Signer",
    "build_page",
    "create_client",
    "create_idempotency_key",
    "load_config",
    "sign_body",
    "sign_header",
    "sign_payment_request",
    "verify",
)
