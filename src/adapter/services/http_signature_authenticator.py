"""HTTP Message Signature authenticator

Verifies the Content-Digest (RFC 9530) and Signature / Signature-Input
(RFC 9421) headers of provider callbacks. Shared-secret signatures use
hmac; public-key signatures use the cryptography package.
"""

import base64
import hashlib
import hmac
import logging
import time
from typing import Callable, Dict, List, Optional, Tuple, Union
from urllib.parse import urlsplit, SplitResult
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import encode_dss_signature
from src.app.errors import ErrorCode, VerificationError
from src.app.services.webhook_authenticator import (
    CONTENT_DIGEST_HEADER,
    SIGNATURE_DATE_HEADER,
    SIGNATURE_HEADER,
    SIGNATURE_INPUT_HEADER,
    InboundRequest,
    WebhookAuthenticator,
)

logger = logging.getLogger(__name__)

DIGEST_ALGORITHMS = {
    "sha-256": hashlib.sha256,
    "sha-512": hashlib.sha512,
}

SUPPORTED_ALGORITHMS = (
    "hmac-sha256",
    "ecdsa-p256-sha256",
    "rsa-pss-sha512",
    "rsa-v1_5-sha256",
    "ed25519",
)

DEFAULT_PORTS = {"http": 80, "https": 443}

CLOCK_SKEW_SECONDS = 60

ParamValue = Union[str, int, bool]


def _split_top_level(value: str, separator: str) -> List[str]:
    """Split on separator outside of quoted strings and inner lists"""
    parts: List[str] = []
    current: List[str] = []
    depth = 0
    in_quotes = False
    escaped = False

    for ch in value:
        if in_quotes:
            current.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_quotes = False
            continue

        if ch == '"':
            in_quotes = True
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(ch)

    if in_quotes or depth != 0:
        raise ValueError("unbalanced quotes or parentheses")

    parts.append("".join(current).strip())
    return [part for part in parts if part]


def _parse_dictionary(value: str) -> Dict[str, str]:
    """Parse a structured-field dictionary into key -> raw member text"""
    members: Dict[str, str] = {}
    for member in _split_top_level(value, ","):
        key, sep, raw = member.partition("=")
        key = key.strip().lower()
        if not sep or not key:
            raise ValueError(f"malformed dictionary member: {member!r}")
        members[key] = raw.strip()
    if not members:
        raise ValueError("empty dictionary")
    return members


def _unquote(value: str) -> str:
    if len(value) < 2 or not (value.startswith('"') and value.endswith('"')):
        raise ValueError(f"expected quoted string: {value!r}")
    return value[1:-1].replace('\\"', '"').replace("\\\\", "\\")


def _parse_param_value(raw: str) -> ParamValue:
    if raw.startswith('"'):
        return _unquote(raw)
    if raw.lstrip("-").isdigit():
        return int(raw)
    return raw


def _parse_params(parts: List[str]) -> Dict[str, ParamValue]:
    params: Dict[str, ParamValue] = {}
    for part in parts:
        key, sep, raw = part.partition("=")
        key = key.strip().lower()
        if not key:
            raise ValueError(f"malformed parameter: {part!r}")
        params[key] = _parse_param_value(raw.strip()) if sep else True
    return params


def _decode_byte_sequence(value: str) -> bytes:
    item = value.split(";", 1)[0].strip()
    if len(item) < 2 or not (item.startswith(":") and item.endswith(":")):
        raise ValueError("expected byte sequence")
    return base64.b64decode(item[1:-1], validate=True)


def _parse_signature_input(value: str) -> Tuple[List[str], Dict[str, ParamValue]]:
    """Parse one Signature-Input member into covered components and parameters"""
    value = value.strip()
    if not value.startswith("("):
        raise ValueError("signature input must be an inner list")

    close = None
    in_quotes = False
    for index, ch in enumerate(value):
        if ch == '"':
            in_quotes = not in_quotes
        elif ch == ")" and not in_quotes:
            close = index
            break
    if close is None:
        raise ValueError("unterminated inner list")

    components: List[str] = []
    for item in _split_top_level(value[1:close], " "):
        if not item.endswith('"'):
            raise ValueError(f"component parameters are not supported: {item!r}")
        name = _unquote(item).lower()
        if name in components:
            raise ValueError(f"duplicate component: {name}")
        components.append(name)

    params = _parse_params(_split_top_level(value[close + 1:], ";"))
    return components, params


def _authority(parts: SplitResult) -> str:
    host = (parts.hostname or "").lower()
    port = parts.port
    if port and DEFAULT_PORTS.get(parts.scheme.lower()) != port:
        return f"{host}:{port}"
    return host


def _invalid_signature(reason: str) -> VerificationError:
    return VerificationError("Invalid Signature", code=ErrorCode.INVALID_SIGNATURE, reason=reason)


def _invalid_digest(reason: str) -> VerificationError:
    return VerificationError("Invalid Content-Digest", code=ErrorCode.INVALID_CONTENT_DIGEST, reason=reason)


class HttpSignatureAuthenticator(WebhookAuthenticator):
    """
    RFC 9421 message signature verification

    Rules:
    - Content-Digest, when present, must match the raw body for every
      supported algorithm it lists
    - Requests without any signature header are rejected unless
      allow_unsigned is set
    - Signed requests must carry Content-Digest and cover it
    - created must be within max_age_seconds (0 disables the check)
    """

    def __init__(
        self,
        hmac_secret: str = "",
        public_keys: Optional[Dict[str, Union[str, bytes]]] = None,
        allow_unsigned: bool = False,
        max_age_seconds: int = 300,
        clock: Callable[[], float] = time.time,
    ):
        self.hmac_secret = hmac_secret or ""
        self.public_keys = {
            keyid: serialization.load_pem_public_key(pem.encode() if isinstance(pem, str) else pem)
            for keyid, pem in (public_keys or {}).items()
        }
        self.allow_unsigned = allow_unsigned
        self.max_age_seconds = max_age_seconds
        self.clock = clock

    def verify(self, request: InboundRequest) -> None:
        digest_header = request.header(CONTENT_DIGEST_HEADER)
        signature_header = request.header(SIGNATURE_HEADER)
        signature_input_header = request.header(SIGNATURE_INPUT_HEADER)
        signature_date = request.header(SIGNATURE_DATE_HEADER)

        if digest_header is not None:
            self._verify_content_digest(request.body, digest_header)

        if not (signature_header or signature_input_header or signature_date):
            if self.allow_unsigned:
                logger.debug("Accepting unsigned callback (unsigned callbacks allowed)")
                return
            raise VerificationError(
                "Missing Signature",
                code=ErrorCode.MISSING_SIGNATURE,
                reason="no signature headers",
            )

        if not signature_header or not signature_input_header:
            raise _invalid_signature("Signature and Signature-Input are both required")
        if digest_header is None:
            raise _invalid_signature("signed request without Content-Digest")

        self._verify_signatures(request, signature_header, signature_input_header)

    def _verify_content_digest(self, body: bytes, header: str) -> None:
        try:
            members = _parse_dictionary(header)
        except ValueError as e:
            raise _invalid_digest(str(e))

        checked = 0
        for algorithm, raw in members.items():
            hash_fn = DIGEST_ALGORITHMS.get(algorithm)
            if hash_fn is None:
                continue
            try:
                expected = _decode_byte_sequence(raw)
            except ValueError as e:
                raise _invalid_digest(f"{algorithm}: {e}")
            if not hmac.compare_digest(expected, hash_fn(body).digest()):
                raise _invalid_digest(f"{algorithm} digest does not match body")
            checked += 1

        if not checked:
            raise _invalid_digest("no supported digest algorithm")

    def _verify_signatures(self, request: InboundRequest, signature_header: str, signature_input_header: str) -> None:
        try:
            inputs = _parse_dictionary(signature_input_header)
            signatures = _parse_dictionary(signature_header)
        except ValueError as e:
            raise _invalid_signature(str(e))

        labels = [label for label in inputs if label in signatures]
        if not labels:
            raise _invalid_signature("no Signature matches a Signature-Input label")

        for label in labels:
            self._verify_one(request, label, inputs[label], signatures[label])

    def _verify_one(self, request: InboundRequest, label: str, raw_input: str, raw_signature: str) -> None:
        try:
            components, params = _parse_signature_input(raw_input)
            signature = _decode_byte_sequence(raw_signature)
        except ValueError as e:
            raise _invalid_signature(f"{label}: {e}")

        if CONTENT_DIGEST_HEADER not in components:
            raise _invalid_signature(f"{label}: content-digest is not covered")

        self._check_timestamps(label, params)
        base = self._signature_base(request, components, raw_input)
        algorithm = self._resolve_algorithm(label, params)
        keyid = params.get("keyid")
        self._verify_bytes(label, algorithm, keyid if isinstance(keyid, str) else None, signature, base)

    def _check_timestamps(self, label: str, params: Dict[str, ParamValue]) -> None:
        now = self.clock()
        created = params.get("created")
        expires = params.get("expires")

        if created is not None and not isinstance(created, int):
            raise _invalid_signature(f"{label}: created must be an integer")
        if self.max_age_seconds > 0:
            if created is None:
                raise _invalid_signature(f"{label}: created parameter is required")
            if now - created > self.max_age_seconds:
                raise _invalid_signature(f"{label}: signature is older than {self.max_age_seconds}s")
        if created is not None and created - now > CLOCK_SKEW_SECONDS:
            raise _invalid_signature(f"{label}: created is in the future")
        if isinstance(expires, int) and expires < now:
            raise _invalid_signature(f"{label}: signature expired")

    def _component_value(self, name: str, request: InboundRequest, parts: SplitResult) -> str:
        if name == "@method":
            return request.method.upper()
        if name == "@target-uri":
            return request.url
        if name == "@authority":
            return _authority(parts)
        if name == "@scheme":
            return parts.scheme.lower()
        if name == "@path":
            return parts.path or "/"
        if name == "@query":
            return f"?{parts.query}"
        if name == "@request-target":
            path = parts.path or "/"
            return f"{path}?{parts.query}" if parts.query else path
        if name.startswith("@"):
            raise _invalid_signature(f"unsupported derived component {name}")

        value = request.header(name)
        if value is None:
            raise _invalid_signature(f"covered header {name} is missing")
        return value

    def _signature_base(self, request: InboundRequest, components: List[str], raw_input: str) -> bytes:
        parts = urlsplit(request.url)
        lines = [
            f'"{name}": {self._component_value(name, request, parts)}'
            for name in components
        ]
        lines.append(f'"@signature-params": {raw_input.strip()}')
        return "\n".join(lines).encode("utf-8")

    def _resolve_algorithm(self, label: str, params: Dict[str, ParamValue]) -> str:
        alg = params.get("alg")
        if isinstance(alg, str):
            alg = alg.lower()
            if alg not in SUPPORTED_ALGORITHMS:
                raise _invalid_signature(f"{label}: unsupported algorithm {alg}")
            return alg

        keyid = params.get("keyid")
        key = self.public_keys.get(keyid) if isinstance(keyid, str) else None
        if isinstance(key, ec.EllipticCurvePublicKey):
            return "ecdsa-p256-sha256"
        if isinstance(key, rsa.RSAPublicKey):
            return "rsa-pss-sha512"
        if isinstance(key, ed25519.Ed25519PublicKey):
            return "ed25519"
        if self.hmac_secret:
            return "hmac-sha256"
        raise _invalid_signature(f"{label}: cannot determine signature algorithm")

    def _public_key(self, label: str, keyid: Optional[str]):
        if keyid is not None and keyid in self.public_keys:
            return self.public_keys[keyid]
        if keyid is None and len(self.public_keys) == 1:
            return next(iter(self.public_keys.values()))
        raise _invalid_signature(f"{label}: unknown keyid {keyid}")

    def _verify_bytes(self, label: str, algorithm: str, keyid: Optional[str], signature: bytes, base: bytes) -> None:
        if algorithm == "hmac-sha256":
            if not self.hmac_secret:
                raise _invalid_signature(f"{label}: no shared secret configured")
            expected = hmac.new(self.hmac_secret.encode("utf-8"), base, hashlib.sha256).digest()
            if not hmac.compare_digest(expected, signature):
                raise _invalid_signature(f"{label}: signature mismatch")
            return

        key = self._public_key(label, keyid)
        try:
            if algorithm == "ecdsa-p256-sha256":
                if not isinstance(key, ec.EllipticCurvePublicKey) or key.curve.name != "secp256r1":
                    raise _invalid_signature(f"{label}: key is not a P-256 key")
                if len(signature) != 64:
                    raise _invalid_signature(f"{label}: ECDSA signature must be 64 bytes")
                r = int.from_bytes(signature[:32], "big")
                s = int.from_bytes(signature[32:], "big")
                key.verify(encode_dss_signature(r, s), base, ec.ECDSA(hashes.SHA256()))
            elif algorithm == "rsa-pss-sha512":
                if not isinstance(key, rsa.RSAPublicKey):
                    raise _invalid_signature(f"{label}: key is not an RSA key")
                key.verify(
                    signature,
                    base,
                    padding.PSS(mgf=padding.MGF1(hashes.SHA512()), salt_length=64),
                    hashes.SHA512(),
                )
            elif algorithm == "rsa-v1_5-sha256":
                if not isinstance(key, rsa.RSAPublicKey):
                    raise _invalid_signature(f"{label}: key is not an RSA key")
                key.verify(signature, base, padding.PKCS1v15(), hashes.SHA256())
            elif algorithm == "ed25519":
                if not isinstance(key, ed25519.Ed25519PublicKey):
                    raise _invalid_signature(f"{label}: key is not an Ed25519 key")
                key.verify(signature, base)
            else:
                raise _invalid_signature(f"{label}: unsupported algorithm {algorithm}")
        except InvalidSignature:
            raise _invalid_signature(f"{label}: signature mismatch")
