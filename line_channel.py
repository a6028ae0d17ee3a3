from __future__ import annotations

# python imports:
import logging
from typing import Callable, Optional as Opt, Type

# pop3_fetch imports:
from base_proto import Pop3IOError
from transport import SyncTransport
from transport_socket import SocketTransport
from util import b2s, s2b

logger = logging.getLogger ( __name__ )


class LineChannel:
	_MAXLINE = 65536 # longest line accepted, not counting CR LF
	_buf: bytes = b''
	transport: Opt[SyncTransport]
	
	def __init__ ( self, transport: SyncTransport ) -> None:
		self.transport = transport
	
	@classmethod
	def open ( cls: Type[LineChannel],
		hostname: str,
		port: int,
		timeout: Opt[float] = None,
	) -> LineChannel:
		return cls ( SocketTransport.connect ( hostname, port, timeout ) )
	
	@property
	def closed ( self ) -> bool:
		return self.transport is None
	
	def _transport ( self ) -> SyncTransport:
		if self.transport is None:
			raise Pop3IOError ( 'channel is closed' )
		return self.transport
	
	def write_line ( self, text: str ) -> None:
		assert text.endswith ( '\r\n' ), f'invalid {text=}'
		self._transport().write ( s2b ( text ) )
	
	def read_line ( self ) -> str:
		transport = self._transport()
		while ( end := self._buf.find ( b'\n' ) + 1 ) == 0:
			if len ( self._buf ) > self._MAXLINE + 1:
				raise Pop3IOError ( 'maximum line length exceeded' )
			data = transport.read()
			if not data:
				raise Pop3IOError ( 'connection closed by server' )
			self._buf += data
		line, self._buf = self._buf[:end-1], self._buf[end:]
		if line.endswith ( b'\r' ):
			line = line[:-1]
		if len ( line ) > self._MAXLINE:
			raise Pop3IOError ( 'maximum line length exceeded' )
		return b2s ( line )
	
	def close ( self ) -> None:
		transport, self.transport = self.transport, None
		self._buf = b''
		if transport is not None:
			transport.close()


ChannelFactory = Callable[[str,int,Opt[float]],LineChannel]
