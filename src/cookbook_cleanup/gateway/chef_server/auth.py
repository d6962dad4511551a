"""Chef API request signing.

Implements header signing for Chef authentication protocol version 1.3
(RSA-SHA256). Every request to the Chef server API must carry these headers.
"""

import base64
import hashlib
import re
from datetime import UTC, datetime

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

SIGN_VERSION = "1.3"
SERVER_API_VERSION = "1"
AUTHORIZATION_LINE_LENGTH = 60


def parse_client_key(pem: bytes) -> rsa.RSAPrivateKey:
    """Parse the client's unencrypted PEM private key.

    Raises:
        ValueError: If the data is not an RSA private key
    """
    key = serialization.load_pem_private_key(pem, password=None)
    if not isinstance(key, rsa.RSAPrivateKey):
        msg = "Chef client key is not an RSA private key"
        raise ValueError(msg)
    return key


def canonical_path(path: str) -> str:
    """Collapse repeated slashes and drop a trailing slash."""
    collapsed = re.sub(r"/+", "/", path)
    if len(collapsed) > 1 and collapsed.endswith("/"):
        collapsed = collapsed[:-1]
    return collapsed


def content_hash(body: bytes) -> str:
    return base64.b64encode(hashlib.sha256(body).digest()).decode("ascii")


def format_timestamp(moment: datetime) -> str:
    return moment.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def canonical_request(
    *,
    method: str,
    path: str,
    hashed_body: str,
    timestamp: str,
    client_name: str,
) -> str:
    return "\n".join(
        [
            f"Method:{method.upper()}",
            f"Path:{canonical_path(path)}",
            f"X-Ops-Content-Hash:{hashed_body}",
            f"X-Ops-Sign:version={SIGN_VERSION}",
            f"X-Ops-Timestamp:{timestamp}",
            f"X-Ops-UserId:{client_name}",
            f"X-Ops-Server-API-Version:{SERVER_API_VERSION}",
        ]
    )


def sign_request(
    *,
    method: str,
    path: str,
    body: bytes,
    client_name: str,
    private_key: rsa.RSAPrivateKey,
    now: datetime,
) -> dict[str, str]:
    """Build the authentication headers for one Chef API request.

    Args:
        method: HTTP method
        path: URL path without query string, including any organization prefix
        body: Request body bytes (empty for GET and DELETE)
        client_name: Chef client or user name
        private_key: The client's RSA key
        now: Request time

    Returns:
        Headers to merge into the request
    """
    hashed_body = content_hash(body)
    timestamp = format_timestamp(now)
    to_sign = canonical_request(
        method=method,
        path=path,
        hashed_body=hashed_body,
        timestamp=timestamp,
        client_name=client_name,
    )
    signature = private_key.sign(to_sign.encode("utf-8"), padding.PKCS1v15(), hashes.SHA256())
    encoded = base64.b64encode(signature).decode("ascii")

    headers = {
        "X-Ops-Sign": f"algorithm=sha256;version={SIGN_VERSION}",
        "X-Ops-Userid": client_name,
        "X-Ops-Timestamp": timestamp,
        "X-Ops-Content-Hash": hashed_body,
        "X-Ops-Server-API-Version": SERVER_API_VERSION,
    }
    chunks = [
        encoded[i : i + AUTHORIZATION_LINE_LENGTH]
        for i in range(0, len(encoded), AUTHORIZATION_LINE_LENGTH)
    ]
    for index, chunk in enumerate(chunks, start=1):
        headers[f"X-Ops-Authorization-{index}"] = chunk
    return headers
