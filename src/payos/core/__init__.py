"""
Core primitives behind every payOS API call: canonicalization, signing,
retry policy, the request pipeline and pagination.
"""

from .canonical import canonicalize, flatten, sort_top_level
from .client import PayOSClient
from .config import (
    ClientParameters,
    ConfigError,
    PayOSConfig,
    RequestOptions,
    load_config,
    merge_options,
)
from .environment import PayOSEnvironment, build_environment, load_env_file
from .errors import ErrorCategory, ErrorKind, PayOSError, error_for_status
from .pagination import Page, Pagination, build_page, iterate_items
from .pipeline import Envelope, FileDownload, RequestDescriptor, RequestPipeline
from .retry import RetryPolicy, RetryState
from .signing import (
    HeaderSignatureOptions,
    RequestSignature,
    ResponseSignature,
    SignatureConfig,
    Signer,
    create_idempotency_key,
    sign_body,
    sign_header,
    sign_payment_request,
    verify,
)

__all__ = [
    "ClientParameters",
    "ConfigError",
    "Envelope",
    "ErrorCategory",
    "ErrorKind",
    "FileDownload",
    "HeaderSignatureOptions",
    "Page",
    "Pagination",
    "PayOSClient",
    "PayOSConfig",
    "PayOSEnvironment",
    "PayOSError",
    "RequestDescriptor",
    "RequestOptions",
    "RequestPipeline",
    "RequestSignature",
    "ResponseSignature",
    "RetryPolicy",
    "RetryState",
    "SignatureConfig",
    "Signer",
    "build_environment",
    "build_page",
    "canonicalize",
    "create_idempotency_key",
    "error_for_status",
    "flatten",
    "iterate_items",
    "load_config",
    "load_env_file",
    "merge_options",
    "sign_body",
    "sign_header",
    "sign_payment_request",
    "sort_top_level",
    "verify",
]
