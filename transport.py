# python imports:
from abc import ABCMeta, abstractmethod
import logging

# pop3_fetch imports:
from util import BYTES

logger = logging.getLogger ( __name__ )


class SyncTransport ( metaclass = ABCMeta ):
	@abstractmethod
	def read ( self ) -> bytes:
		''' block until some data is available, return b'' on EOF '''
		cls = type ( self )
		raise NotImplementedError ( f'{cls.__module__}.{cls.__name__}.read()' )
	
	@abstractmethod
	def write ( self, data: BYTES ) -> None:
		cls = type ( self )
		raise NotImplementedError ( f'{cls.__module__}.{cls.__name__}.write()' )
	
	@abstractmethod
	def close ( self ) -> None:
		cls = type ( self )
		raise NotImplementedError ( f'{cls.__module__}.{cls.__name__}.close()' )
