from __future__ import annotations

# python imports:
import enum
import logging
from types import TracebackType
from typing import List, Optional as Opt, Type

# pop3_fetch imports:
from base_proto import Pop3Error, ProtocolStateError
from line_channel import ChannelFactory, LineChannel
import pop3_proto as proto

logger = logging.getLogger ( __name__ )


class Phase ( enum.Enum ):
	DISCONNECTED = 'DISCONNECTED'
	AUTHORIZATION = 'AUTHORIZATION'
	TRANSACTION = 'TRANSACTION'


class Client:
	'''
	One POP3 session for one account.
	
	Use it as a context manager so the connection is released on every exit path:
	
		with Client ( account ) as cli:
			cli.connect()
			cli.authorize()
			for info in cli.list():
				...
	'''
	phase: Phase = Phase.DISCONNECTED
	channel: Opt[LineChannel] = None
	
	def __init__ ( self,
		account: proto.Account,
		*,
		timeout: Opt[float] = None,
		channel_factory: ChannelFactory = LineChannel.open,
	) -> None:
		self.account = account
		self.timeout = timeout
		self.channel_factory = channel_factory
	
	def __enter__ ( self ) -> Client:
		return self
	
	def __exit__ ( self,
		exc_type: Opt[Type[BaseException]],
		exc_val: Opt[BaseException],
		exc_tb: Opt[TracebackType],
	) -> None:
		self.disconnect()
	
	#region phase checks
	
	def _require_phase ( self, phase: Phase ) -> None:
		if self.phase is not phase:
			raise ProtocolStateError ( f'Phase required: {phase.name} actual: {self.phase.name}' )
	
	#endregion
	#region wire helpers
	
	def _channel ( self ) -> LineChannel:
		assert self.channel is not None, f'no channel in {self.phase=}'
		return self.channel
	
	def _send ( self, request: proto.Request ) -> None:
		log = logger.getChild ( 'Client._send' )
		log.debug ( f'C>{request.loggable()}' )
		self._channel().write_line ( request.encode() )
	
	def _request ( self, request: proto.Request ) -> proto.SuccessResponse:
		self._send ( request )
		response = proto.read_response ( self._channel(), request.verb )
		response.require_ok()
		assert isinstance ( response, proto.SuccessResponse )
		return response
	
	def _request_multi ( self, request: proto.Request ) -> proto.MultiResponse:
		self._send ( request )
		response = proto.read_multi_response ( self._channel(), request.verb )
		response.require_ok()
		assert isinstance ( response, proto.MultiResponse )
		return response
	
	#endregion
	#region operations
	
	def connect ( self ) -> proto.SuccessResponse:
		log = logger.getChild ( 'Client.connect' )
		self._require_phase ( Phase.DISCONNECTED )
		account = self.account
		log.debug ( f'connecting to {account.host}:{account.port}' )
		self.channel = self.channel_factory ( account.host, account.port, self.timeout )
		try:
			greeting = proto.read_response ( self.channel, 'GREETING' )
			greeting.require_ok()
		except BaseException:
			self._release()
			raise
		assert isinstance ( greeting, proto.SuccessResponse )
		self.phase = Phase.AUTHORIZATION
		return greeting
	
	def authorize ( self ) -> proto.SuccessResponse:
		self._require_phase ( Phase.AUTHORIZATION )
		self._request ( proto.UserRequest ( self.account.username ) )
		response = self._request ( proto.PassRequest ( self.account.password ) )
		self.phase = Phase.TRANSACTION
		return response
	
	def list ( self ) -> List[proto.MailInfo]:
		self._require_phase ( Phase.TRANSACTION )
		response = self._request_multi ( proto.ListRequest() )
		return proto.ListRequest.parse_listing ( response )
	
	def retrieve ( self, info: proto.MailInfo ) -> proto.Mail:
		self._require_phase ( Phase.TRANSACTION )
		response = self._request_multi ( proto.RetrRequest ( info.index ) )
		return proto.Mail ( response.payload )
	
	def delete ( self, info: proto.MailInfo ) -> proto.SuccessResponse:
		self._require_phase ( Phase.TRANSACTION )
		return self._request ( proto.DeleRequest ( info.index ) )
	
	def disconnect ( self ) -> None:
		'''
		Say QUIT (so the server commits any DELE) and release the connection.
		
		Calling this on a disconnected session does nothing.
		'''
		log = logger.getChild ( 'Client.disconnect' )
		if self.phase is Phase.DISCONNECTED:
			return
		try:
			if self.channel is not None and not self.channel.closed:
				self._request ( proto.QuitRequest() )
		except Pop3Error as e:
			log.warning ( f'QUIT failed for {self.account}: {e!r}' )
		finally:
			self._release()
	
	def _release ( self ) -> None:
		log = logger.getChild ( 'Client._release' )
		channel, self.channel = self.channel, None
		self.phase = Phase.DISCONNECTED
		if channel is not None:
			try:
				channel.close()
			except OSError as e:
				log.warning ( f'error closing channel for {self.account}: {e!r}' )
	
	#endregion
