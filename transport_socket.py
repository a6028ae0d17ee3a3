from __future__ import annotations

# python imports:
import logging
import socket
from typing import Optional as Opt, Type

# pop3_fetch imports:
from base_proto import Pop3ConnectionError, Pop3IOError
from transport import SyncTransport
from util import BYTES

logger = logging.getLogger ( __name__ )


class SocketTransport ( SyncTransport ):
	_RECV_SIZE = 4096
	sock: Opt[socket.socket]
	
	def __init__ ( self, sock: socket.socket ) -> None:
		self.sock = sock
	
	@classmethod
	def connect ( cls: Type[SocketTransport],
		hostname: str,
		port: int,
		timeout: Opt[float] = None,
	) -> SocketTransport:
		log = logger.getChild ( 'SocketTransport.connect' )
		try:
			addresses = socket.getaddrinfo ( hostname, port, type = socket.SOCK_STREAM )
		except OSError as e:
			raise Pop3ConnectionError ( f'Unable to resolve {hostname=}: {e!r}' ) from e
		
		for *params, _, address in addresses:
			sock: Opt[socket.socket] = None
			try:
				sock = socket.socket ( *params )
				sock.settimeout ( timeout )
				sock.connect ( address )
			except OSError as e:
				log.warning ( f'Error connecting to {address=}: {e!r}' )
				if sock is not None:
					sock.close()
				continue
			else:
				return cls ( sock )
		raise Pop3ConnectionError ( f'Unable to connect to {hostname=} {port=}' )
	
	def read ( self ) -> bytes:
		#log = logger.getChild ( 'SocketTransport.read' )
		if self.sock is None:
			raise Pop3IOError ( 'read on closed transport' )
		try:
			return self.sock.recv ( self._RECV_SIZE )
		except OSError as e:
			raise Pop3IOError ( f'Cannot read response: {e!r}' ) from e
	
	def write ( self, data: BYTES ) -> None:
		#log = logger.getChild ( 'SocketTransport.write' )
		if self.sock is None:
			raise Pop3IOError ( 'write on closed transport' )
		try:
			self.sock.sendall ( data )
		except OSError as e:
			raise Pop3IOError ( f'Cannot send request: {e!r}' ) from e
	
	def close ( self ) -> None:
		#log = logger.getChild ( 'SocketTransport.close' )
		sock, self.sock = self.sock, None
		if sock is not None:
			sock.close()
