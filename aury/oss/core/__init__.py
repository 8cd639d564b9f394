"""核心层 - 凭证、签名、请求构建与预签名 URL。"""

from .context import ClientContext, utc_now
from .credential import Credential
from .presign import PresignedUrlBuilder
from .request import Endpoint, RequestBuilder, Scope, SignedRequest
from .sign import SignatureEngine

__all__ = [
    "ClientContext",
    "Credential",
    "Endpoint",
    "PresignedUrlBuilder",
    "RequestBuilder",
    "Scope",
    "SignatureEngine",
    "SignedRequest",
    "utc_now",
]
