# Copyright 2021 The NATS Authors
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
The data port is the byte pipe a connection engine dials through. Only
the interface matters to the options; :class:`TcpDataPort` is the
default implementation built by ``Options.build_data_port()``.
"""

from __future__ import annotations

import abc
import asyncio
import ssl
from typing import TYPE_CHECKING, List, Optional

from nats_options import registry

if TYPE_CHECKING:
    from nats_options.uri import Endpoint


class DataPort(abc.ABC):

    @abc.abstractmethod
    async def connect(
        self, server: Endpoint, buffer_size: int, connect_timeout: float
    ) -> None:
        """
        Opens the plain connection to the resolved server endpoint.
        """

    @abc.abstractmethod
    async def upgrade_to_tls(
        self,
        ssl_context: ssl.SSLContext,
        server_hostname: Optional[str],
        connect_timeout: float,
    ) -> None:
        """
        Upgrades an open connection once the server INFO asks for TLS.
        """

    @abc.abstractmethod
    def write(self, payload: bytes) -> None:
        pass

    @abc.abstractmethod
    def writelines(self, payload: List[bytes]) -> None:
        pass

    @abc.abstractmethod
    async def read(self, buffer_size: int) -> bytes:
        pass

    @abc.abstractmethod
    async def readline(self) -> bytes:
        pass

    @abc.abstractmethod
    async def drain(self) -> None:
        pass

    @abc.abstractmethod
    def close(self) -> None:
        pass

    @abc.abstractmethod
    async def wait_closed(self) -> None:
        pass

    @abc.abstractmethod
    def at_eof(self) -> bool:
        pass

    @abc.abstractmethod
    def __bool__(self) -> bool:
        """
        True once connect() has succeeded.
        """


class TcpDataPort(DataPort):

    def __init__(self) -> None:
        self._bare_writer: Optional[asyncio.StreamWriter] = None
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None

    async def connect(
        self, server: Endpoint, buffer_size: int, connect_timeout: float
    ) -> None:
        r, w = await asyncio.wait_for(
            asyncio.open_connection(
                host=server.host,
                port=server.port,
                limit=buffer_size,
            ), connect_timeout
        )
        # The original writer must outlive a TLS upgrade, otherwise the
        # socket is collected once the transport is replaced.
        self._bare_writer = w
        self._reader, self._writer = r, w

    async def upgrade_to_tls(
        self,
        ssl_context: ssl.SSLContext,
        server_hostname: Optional[str],
        connect_timeout: float,
    ) -> None:
        assert self._writer, f'{type(self).__name__}.connect must be called first'

        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader()
        protocol = asyncio.StreamReaderProtocol(reader)
        transport = await asyncio.wait_for(
            loop.start_tls(
                self._writer.transport,
                protocol,
                ssl_context,
                server_hostname=server_hostname,
            ), connect_timeout
        )
        writer = asyncio.StreamWriter(transport, protocol, reader, loop)
        self._reader, self._writer = reader, writer

    def write(self, payload: bytes) -> None:
        assert self._writer, f'{type(self).__name__}.connect must be called first'
        self._writer.write(payload)

    def writelines(self, payload: List[bytes]) -> None:
        assert self._writer, f'{type(self).__name__}.connect must be called first'
        self._writer.writelines(payload)

    async def read(self, buffer_size: int) -> bytes:
        assert self._reader, f'{type(self).__name__}.connect must be called first'
        return await self._reader.read(buffer_size)

    async def readline(self) -> bytes:
        assert self._reader, f'{type(self).__name__}.connect must be called first'
        return await self._reader.readline()

    async def drain(self) -> None:
        if self._writer:
            await self._writer.drain()

    def close(self) -> None:
        if self._writer:
            self._writer.close()

    async def wait_closed(self) -> None:
        if self._writer:
            await self._writer.wait_closed()

    def at_eof(self) -> bool:
        return self._reader is None or self._reader.at_eof()

    def __bool__(self) -> bool:
        return self._writer is not None and self._reader is not None


registry.register_factory(registry.DATA_PORT, "tcp", TcpDataPort)
