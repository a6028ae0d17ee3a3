#region PROLOGUE --------------------------------------------------------------
from __future__ import annotations

# python imports:
import logging
from typing import List, NamedTuple, Sequence as Seq, Tuple, Union

# pop3_fetch imports:
from base_proto import BaseRequest, BaseResponse, ProtocolError
from line_channel import LineChannel

logger = logging.getLogger ( __name__ )

OK = '+OK'
ERR = '-ERR'
TERMINATOR = '.'
CRLF = '\r\n'


#endregion
#region DATA ------------------------------------------------------------------

class Account ( NamedTuple ):
	host: str
	port: int
	username: str
	password: str
	
	def __repr__ ( self ) -> str:
		return f'Account({self.username!r}@{self.host!r}:{self.port!r})'
	
	__str__ = __repr__


class MailInfo ( NamedTuple ):
	index: str # server-assigned message number, only valid for the current session
	size: str


class Mail ( NamedTuple ):
	body: str
	
	def __str__ ( self ) -> str:
		subject = next ( (
			line[8:].strip() for line in self.body.split ( CRLF )
			if line.lower().startswith ( 'subject:' )
		), '' )
		return f'Mail({len(self.body)} chars, subject={subject!r})'


#endregion
#region RESPONSES -------------------------------------------------------------

class Response ( BaseResponse ):
	def __init__ ( self, command: str, message: str ) -> None:
		self.command = command
		self.message = message
	
	@property
	def ok ( self ) -> bool:
		return self.is_success()
	
	@staticmethod
	def parse ( command: str, line: str ) -> Union[SuccessResponse,ErrorResponse]:
		if line.startswith ( ERR ):
			return ErrorResponse ( command, _text_after ( line, ERR ) )
		# anything that is not -ERR counts as success
		return SuccessResponse ( command, _text_after ( line, OK ) )
	
	def require_ok ( self ) -> None:
		if not self.ok:
			raise ProtocolError ( self.message, self.command )
	
	def __repr__ ( self ) -> str:
		cls = type ( self )
		return f'{cls.__module__}.{cls.__name__}({self.command!r}, {self.message!r})'


def _text_after ( line: str, marker: str ) -> str:
	if line.startswith ( marker ):
		line = line[len(marker):]
		if line.startswith ( ' ' ):
			line = line[1:]
	return line


class SuccessResponse ( Response ):
	def is_success ( self ) -> bool:
		return True


class ErrorResponse ( Response ):
	def is_success ( self ) -> bool:
		return False


class MultiResponse ( SuccessResponse ):
	'''
	A +OK status line followed by a dot-terminated block.
	
	`payload` holds the block with every line re-terminated by CRLF,
	byte-stuffing undone and the terminating "." line left out.
	'''
	def __init__ ( self, command: str, message: str, payload: str ) -> None:
		self.payload = payload
		super().__init__ ( command, message )
	
	@property
	def lines ( self ) -> List[str]:
		return self.payload.split ( CRLF )[:-1]
	
	def __repr__ ( self ) -> str:
		cls = type ( self )
		return f'{cls.__module__}.{cls.__name__}({self.command!r}, {self.message!r}, {self.payload!r})'


def read_response ( channel: LineChannel, command: str ) -> Union[SuccessResponse,ErrorResponse]:
	log = logger.getChild ( 'read_response' )
	line = channel.read_line()
	log.debug ( f'S>{line}' )
	return Response.parse ( command, line )


def read_multi_response ( channel: LineChannel, command: str ) -> Union[MultiResponse,ErrorResponse]:
	log = logger.getChild ( 'read_multi_response' )
	status = read_response ( channel, command )
	if not status.ok:
		# no block follows an error
		assert isinstance ( status, ErrorResponse )
		return status
	
	chunks: List[str] = []
	while ( line := channel.read_line() ) != TERMINATOR:
		if line.startswith ( '..' ):
			line = line[1:]
		chunks.append ( line + CRLF )
	payload = ''.join ( chunks )
	log.debug ( f'S>({len(chunks)} lines, {len(payload)} chars)' )
	return MultiResponse ( command, status.message, payload )


#endregion
#region REQUESTS --------------------------------------------------------------

class Request ( BaseRequest ):
	def __init__ ( self, *args: str ) -> None:
		self._args: Tuple[str,...] = tuple ( map ( str, args ) )
	
	@property
	def args ( self ) -> Seq[str]:
		return self._args
	
	def __repr__ ( self ) -> str:
		cls = type ( self )
		return f'{cls.__module__}.{cls.__name__}({", ".join(map(repr,self._args))})'


class UserRequest ( Request ):
	verb = 'USER'
	
	def __init__ ( self, name: str ) -> None:
		super().__init__ ( name )


class PassRequest ( Request ):
	verb = 'PASS'
	
	def __init__ ( self, password: str ) -> None:
		super().__init__ ( password )
	
	def loggable ( self ) -> str:
		return f'{self.verb} ********'
	
	def __repr__ ( self ) -> str:
		cls = type ( self )
		return f'{cls.__module__}.{cls.__name__}(********)'


class ListRequest ( Request ):
	verb = 'LIST'
	
	def __init__ ( self ) -> None:
		super().__init__()
	
	@staticmethod
	def parse_listing ( response: MultiResponse ) -> List[MailInfo]:
		infos: List[MailInfo] = []
		seen = set()
		for line in response.lines:
			line = line.strip()
			if not line:
				continue
			try:
				index, size = line.split()
			except ValueError:
				raise ProtocolError ( f'malformed LIST entry {line!r}', 'LIST' ) from None
			info = MailInfo ( index, size )
			if info not in seen:
				seen.add ( info )
				infos.append ( info )
		return infos


class RetrRequest ( Request ):
	verb = 'RETR'
	
	def __init__ ( self, index: str ) -> None:
		super().__init__ ( index )


class DeleRequest ( Request ):
	verb = 'DELE'
	
	def __init__ ( self, index: str ) -> None:
		super().__init__ ( index )


class QuitRequest ( Request ):
	verb = 'QUIT'
	
	def __init__ ( self ) -> None:
		super().__init__()

#endregion
