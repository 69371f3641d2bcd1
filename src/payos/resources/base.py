from __future__ import annotations

from typing import TYPE_CHECKING, Union

from ..core.config import RequestOptions
from ..core.signing import RequestSignature, ResponseSignature, SignatureConfig

if TYPE_CHECKING:  # pragma: no cover
    from ..core.client import PayOSClient

__all__ = ["ApiResource", "signed"]

IdOrOrderCode = Union[str, int]


def signed(
    request: RequestSignature = RequestSignature.NONE,
    response: ResponseSignature = ResponseSignature.NONE,
) -> RequestOptions:
    """Resource-level default options carrying only a signature pair."""
    return RequestOptions(signature=SignatureConfig(request=request, response=response))


class ApiResource:
    def __init__(self, client: "PayOSClient") -> None:
        self._client = client
