import base64
import hashlib
import hmac

from .errors import ValidationError
from .types import Credentials, RequestDescriptor


def sign_path(path_and_query: str, secret: str) -> str:
    """URL-safe base64 HMAC-SHA1 of ``path?query`` keyed by the URL-safe base64 secret."""
    try:
        padded = secret + "=" * (-len(secret) % 4)
        key = base64.b64decode(padded, altchars=b"-_", validate=True)
    except (ValueError, TypeError) as e:
        raise ValidationError("client secret is not valid URL-safe base64") from e
    digest = hmac.new(key, path_and_query.encode("utf-8"), hashlib.sha1).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii")


class RequestSigner:
    def __init__(self, credentials: Credentials):
        self.credentials = credentials
        if credentials.signed:
            # Fail at construction, not on the first request.
            sign_path("/", credentials.client_secret)

    def sign(self, descriptor: RequestDescriptor) -> RequestDescriptor:
        creds = self.credentials
        if not creds.signed:
            return descriptor.with_params(("key", creds.api_key))
        extra = [("client", creds.client_id)]
        if creds.channel:
            extra.append(("channel", creds.channel))
        unsigned = descriptor.with_params(*extra)
        signature = sign_path(unsigned.path_and_query(), creds.client_secret)
        return unsigned.with_params(("signature", signature))
