from __future__ import annotations

# python imports:
from abc import ABCMeta, abstractmethod
import logging
from typing import Sequence as Seq

logger = logging.getLogger ( __name__ )


class Pop3Error ( Exception ):
	pass


class Pop3ConnectionError ( Pop3Error, ConnectionError ):
	''' the transport could not be established '''


class Pop3IOError ( Pop3Error, OSError ):
	''' a read or write failed on a channel that was believed to be open '''


class ProtocolStateError ( Pop3Error ):
	''' an operation was attempted in the wrong session phase '''


class ProtocolError ( Pop3Error ):
	''' the server rejected a request, or replied with something unparseable '''
	def __init__ ( self, message: str, command: str = '' ) -> None:
		self.message = message
		self.command = command
		super().__init__ ( message )


class BaseResponse ( metaclass = ABCMeta ):
	@abstractmethod
	def is_success ( self ) -> bool:
		cls = self.__class__
		raise NotImplementedError ( f'{cls.__module__}.{cls.__name__}.is_success()' )


class BaseRequest ( metaclass = ABCMeta ):
	verb: str
	
	@property
	@abstractmethod
	def args ( self ) -> Seq[str]:
		cls = type ( self )
		raise NotImplementedError ( f'{cls.__module__}.{cls.__name__}.args' )
	
	def encode ( self ) -> str:
		return ' '.join ( [ self.verb, *self.args ] ) + '\r\n'
	
	def loggable ( self ) -> str:
		# override to hide secrets from the wire log
		return self.encode().rstrip()
	
	def __repr__ ( self ) -> str:
		cls = type ( self )
		return f'{cls.__module__}.{cls.__name__}()'
