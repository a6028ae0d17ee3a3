from __future__ import annotations

# python imports:
from abc import ABCMeta, abstractmethod
import logging
import threading
from typing import Dict, List

# pop3_fetch imports:
from pop3_proto import Account, Mail

logger = logging.getLogger ( __name__ )


class MailStore ( metaclass = ABCMeta ):
	@abstractmethod
	def register_account ( self, account: Account ) -> None:
		''' must be idempotent '''
		cls = type ( self )
		raise NotImplementedError ( f'{cls.__module__}.{cls.__name__}.register_account()' )
	
	@abstractmethod
	def persist ( self, account: Account, mail: Mail ) -> Mail:
		''' store one mail, return the store's own representation of it '''
		cls = type ( self )
		raise NotImplementedError ( f'{cls.__module__}.{cls.__name__}.persist()' )


class MemoryMailStore ( MailStore ):
	def __init__ ( self ) -> None:
		self._lock = threading.Lock()
		self._mails: Dict[Account,List[Mail]] = {}
	
	def register_account ( self, account: Account ) -> None:
		with self._lock:
			self._mails.setdefault ( account, [] )
	
	def persist ( self, account: Account, mail: Mail ) -> Mail:
		log = logger.getChild ( 'MemoryMailStore.persist' )
		with self._lock:
			mails = self._mails[account] # KeyError if never registered
			for stored in mails:
				if stored == mail:
					log.debug ( f'{account}: already have {stored}' )
					return stored
			mails.append ( mail )
			return mail
	
	def mails ( self, account: Account ) -> List[Mail]:
		with self._lock:
			return list ( self._mails.get ( account, [] ) )
