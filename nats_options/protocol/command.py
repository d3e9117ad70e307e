"""CONNECT payload construction."""

from __future__ import annotations

import base64
import json
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

from nats_options.protocol.constants import (
    _CRLF_,
    _SPC_,
    CONNECT_OP,
    OPTION_AUTH_TOKEN,
    OPTION_ECHO,
    OPTION_JWT,
    OPTION_LANG,
    OPTION_NAME,
    OPTION_NKEY,
    OPTION_PASSWORD,
    OPTION_PEDANTIC,
    OPTION_PROTOCOL,
    OPTION_SIG,
    OPTION_TLS_REQUIRED,
    OPTION_USER,
    OPTION_VERBOSE,
    OPTION_VERSION,
    PROTOCOL,
    __lang__,
    __version__,
)

if TYPE_CHECKING:
    from nats_options.options import Options
    from nats_options.uri import Endpoint

Nonce = Union[bytes, bytearray, str]


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return value.decode()
    return str(value)


def _sig(signature: Optional[bytes]) -> str:
    if not signature:
        return ""
    return base64.urlsafe_b64encode(signature).rstrip(b"=").decode()


def connect_info(
    options: Options,
    server: Endpoint,
    *,
    include_auth: bool,
    nonce: Optional[Nonce] = None,
) -> Dict[str, Any]:
    """Collects the CONNECT fields for a dial attempt to ``server``.

    Args:
        options: Resolved connection options
        server: The endpoint being dialed
        include_auth: Whether the server asked for authentication
        nonce: Nonce from the server INFO, if any

    Returns:
        The fields in wire order
    """
    info: Dict[str, Any] = {
        OPTION_LANG: __lang__,
        OPTION_VERSION: __version__,
    }
    if options.connection_name is not None:
        info[OPTION_NAME] = options.connection_name
    info[OPTION_PROTOCOL] = PROTOCOL
    info[OPTION_VERBOSE] = options.verbose
    info[OPTION_PEDANTIC] = options.pedantic
    info[OPTION_TLS_REQUIRED] = options.tls_required
    info[OPTION_ECHO] = not options.no_echo

    if not include_auth:
        return info

    handler = options.auth_handler
    if nonce is not None and handler is not None:
        if isinstance(nonce, str):
            nonce = nonce.encode()
        # The signer never falls back to user, pass or token.
        info[OPTION_NKEY] = _as_str(handler.public_key())
        info[OPTION_SIG] = _sig(handler.sign(bytes(nonce)))
        info[OPTION_JWT] = _as_str(handler.user_jwt())
        return info

    # Values embedded in the server url override configured ones.
    if server.username is not None:
        info[OPTION_USER] = server.username
        info[OPTION_PASSWORD] = server.password
    elif server.token is not None:
        info[OPTION_AUTH_TOKEN] = server.token
    elif options.token is not None:
        info[OPTION_AUTH_TOKEN] = options.token
    else:
        if options.username is not None:
            info[OPTION_USER] = options.username
        if options.password is not None:
            info[OPTION_PASSWORD] = options.password
    return info


def connect_options(
    options: Options,
    server: Endpoint,
    *,
    include_auth: bool,
    nonce: Optional[Nonce] = None,
) -> str:
    """Builds the JSON object sent with CONNECT.

    Keys keep the order of :func:`connect_info` and there is no whitespace
    between tokens::

        {"lang":"python3","version":"0.1.0","protocol":1,...}

    """
    info = connect_info(
        options, server, include_auth=include_auth, nonce=nonce
    )
    return json.dumps(info, separators=(",", ":"), ensure_ascii=False)


def encode_connect(
    options: Options,
    server: Endpoint,
    *,
    include_auth: bool,
    nonce: Optional[Nonce] = None,
) -> bytes:
    """Encode CONNECT command.

    Returns:
        Encoded CONNECT command
    """
    payload = connect_options(
        options, server, include_auth=include_auth, nonce=nonce
    )
    return CONNECT_OP + _SPC_ + payload.encode() + _CRLF_
