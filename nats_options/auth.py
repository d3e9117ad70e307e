# Copyright 2016-2021 The NATS Authors
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
"""
Auth handlers sign the nonce a server sends in INFO so that the CONNECT
payload can prove possession of an nkey seed.

A handler returns the raw signature; encoding it for the wire is done
when building the CONNECT payload. Handlers may be called concurrently
when several servers are dialed at once, so the bundled ones keep no
mutable state and reload the seed for every signature.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional, Protocol, Tuple, Union, runtime_checkable

import nkeys

from nats_options.errors import InvalidUserCredentialsError

Seed = Union[str, bytes, bytearray, Path]

_JWT_RE = re.compile(
    r"-----BEGIN NATS USER JWT-----\s*(.+?)\s*-+END NATS USER JWT-+",
    re.DOTALL,
)
_SEED_RE = re.compile(
    r"-----BEGIN USER NKEY SEED-----\s*(.+?)\s*-+END USER NKEY SEED-+",
    re.DOTALL,
)


@runtime_checkable
class AuthHandler(Protocol):

    def public_key(self) -> Optional[Union[str, bytes]]:
        """
        Returns the public nkey of the user, if the server should
        verify the signature against it directly.
        """
        ...

    def sign(self, nonce: bytes) -> Optional[bytes]:
        """
        Returns the raw signature of the server nonce.
        """
        ...

    def user_jwt(self) -> Optional[Union[str, bytes]]:
        """
        Returns the user JWT, if the account uses decentralized auth.
        """
        ...


def parse_credentials(contents: str,
                      source: object = None) -> Tuple[str, bytearray]:
    """
    Extracts the user JWT and nkey seed from the contents of a
    ``.creds`` file as generated by nsc.
    """
    jwt_match = _JWT_RE.search(contents)
    if not jwt_match:
        raise InvalidUserCredentialsError(source or "no user JWT found")
    seed_match = _SEED_RE.search(contents)
    if not seed_match:
        raise InvalidUserCredentialsError(source or "no user nkey seed found")
    return jwt_match.group(1).strip(), bytearray(seed_match.group(1).strip().encode())


def _load_seed(seed: Seed) -> bytearray:
    if isinstance(seed, Path):
        return bytearray(seed.read_bytes().strip())
    if isinstance(seed, str):
        return bytearray(seed.strip().encode())
    return bytearray(seed.strip())


def _sign_with_seed(seed: bytearray, nonce: bytes) -> bytes:
    kp = nkeys.from_seed(seed)
    try:
        return kp.sign(nonce)
    finally:
        # Best effort attempt to clear from memory.
        kp.wipe()
        del kp


class NKeyAuthHandler:
    """
    Signs with a bare user nkey seed, given directly or as the path of
    a file holding it. The server verifies against the public key.
    """

    def __init__(self, seed: Seed) -> None:
        self._seed = seed
        s = _load_seed(seed)
        kp = nkeys.from_seed(s)
        self._public_key: str = kp.public_key.decode()
        kp.wipe()
        del kp

    def public_key(self) -> Optional[str]:
        return self._public_key

    def sign(self, nonce: bytes) -> bytes:
        return _sign_with_seed(_load_seed(self._seed), nonce)

    def user_jwt(self) -> Optional[str]:
        return None


class UserCredentialsAuthHandler:
    """
    Signs with the seed from a ``.creds`` file and presents its JWT.

    When ``seed_file`` is given, ``creds`` only needs to hold the JWT,
    either as a bare token or in the ``.creds`` layout.
    """

    def __init__(
        self,
        creds: Union[str, Path],
        seed_file: Optional[Union[str, Path]] = None,
    ) -> None:
        self._creds = Path(creds)
        self._seed_file = Path(seed_file) if seed_file is not None else None

    def _read(self) -> Tuple[str, bytearray]:
        try:
            contents = self._creds.read_text()
        except OSError as e:
            raise InvalidUserCredentialsError(self._creds) from e

        if self._seed_file is None:
            return parse_credentials(contents, self._creds)

        jwt_match = _JWT_RE.search(contents)
        jwt = jwt_match.group(1).strip() if jwt_match else contents.strip()
        try:
            seed = _load_seed(self._seed_file)
        except OSError as e:
            raise InvalidUserCredentialsError(self._seed_file) from e
        return jwt, seed

    def public_key(self) -> Optional[str]:
        return None

    def sign(self, nonce: bytes) -> bytes:
        _, seed = self._read()
        return _sign_with_seed(seed, nonce)

    def user_jwt(self) -> str:
        jwt, seed = self._read()
        seed[:] = bytes(len(seed))
        return jwt


class StaticAuthHandler:
    """
    Holds a user JWT and seed in memory, e.g. when credentials come
    from a secrets store rather than a file.
    """

    def __init__(self, jwt: Union[str, bytes], seed: Union[str, bytes]) -> None:
        self._jwt = jwt.decode() if isinstance(jwt, bytes) else jwt
        self._seed = seed.encode() if isinstance(seed, str) else bytes(seed)

    @classmethod
    def from_credentials(cls, contents: str) -> StaticAuthHandler:
        jwt, seed = parse_credentials(contents)
        return cls(jwt, bytes(seed))

    def public_key(self) -> Optional[str]:
        return None

    def sign(self, nonce: bytes) -> bytes:
        return _sign_with_seed(bytearray(self._seed), nonce)

    def user_jwt(self) -> str:
        return self._jwt
