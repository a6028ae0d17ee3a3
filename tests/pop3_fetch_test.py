# python imports:
import contextlib
import logging
from pathlib import Path
import sys
from typing import Iterator, Optional as Opt
import unittest

import packaging.version # pip install packaging
import trio # pip install trio

if __name__ == '__main__': # pragma: no cover
	sys.path.append ( str ( Path ( __file__ ).parent.parent.absolute() ) )

# pop3_fetch imports:
from base_proto import Pop3ConnectionError, ProtocolError, ProtocolStateError
from line_channel import LineChannel
from mail_store import MemoryMailStore
import pop3_fetch
from pop3_proto import Account, Mail
from pop3_sync import Client, Phase
from tests.pop3_testing import FakeMaildrop, MaildropFactory

logger = logging.getLogger ( __name__ )

ZAPHOD = Account ( 'milliways.local', 110, 'zaphod', 'beeblebrox' )

MESSAGES = [
	'From: a\r\nSubject: hi\r\n',
	'From: b\r\nSubject: towel day\r\n',
	'From: c\r\nSubject: hi\r\n',
]


@contextlib.contextmanager
def quiet_logging ( quiet: bool = True ) -> Iterator[None]:
	try:
		if quiet:
			logging.disable ( logging.CRITICAL )
		yield None
	finally:
		if quiet:
			logging.disable ( logging.NOTSET )


class AnnotatingStore ( MemoryMailStore ):
	''' hands back something other than what it was given '''
	def persist ( self, account: Account, mail: Mail ) -> Mail:
		return super().persist ( account, Mail ( f'X-Fetched-For: {account.username}\r\n{mail.body}' ) )


class FailingStore ( MemoryMailStore ):
	def __init__ ( self, fail_after: int ) -> None:
		super().__init__()
		self.fail_after = fail_after
	
	def persist ( self, account: Account, mail: Mail ) -> Mail:
		if len ( self.mails ( account ) ) >= self.fail_after:
			raise OSError ( 'disk full' )
		return super().persist ( account, mail )


class CycleTests ( unittest.TestCase ):
	def test_version ( self ) -> None:
		self.assertIsInstance ( pop3_fetch.__version__, packaging.version.Version )
	
	def test_fetch_cycle ( self ) -> None:
		maildrop = FakeMaildrop ( MESSAGES )
		factory = MaildropFactory ( maildrop )
		store = AnnotatingStore()
		with self.assertLogs ( 'pop3_fetch', logging.INFO ) as cm:
			result = pop3_fetch.fetch_account ( ZAPHOD, store, channel_factory = factory )
		self.assertEqual ( result.account, ZAPHOD )
		self.assertEqual ( [ info.index for info in result.listed ], [ '1', '2', '3' ] )
		self.assertEqual ( result.deleted, result.listed )
		self.assertEqual ( result.stored, store.mails ( ZAPHOD ) )
		self.assertTrue ( all ( mail.body.startswith ( 'X-Fetched-For: zaphod\r\n' ) for mail in result.stored ) )
		self.assertEqual ( maildrop.commands, [
			'USER zaphod', 'PASS beeblebrox', 'LIST',
			'RETR 1', 'RETR 2', 'RETR 3',
			'DELE 1', 'DELE 2', 'DELE 3',
			'QUIT',
		] )
		self.assertEqual ( maildrop.deleted, [ '1', '2', '3' ] )
		self.assertEqual ( factory.transports[0].close_count, 1 )
		summary = '\n'.join ( cm.output )
		self.assertIn ( "Account('zaphod'@'milliways.local':110)", summary )
		self.assertIn ( '3 Mail(', summary )
	
	def test_empty_maildrop ( self ) -> None:
		maildrop = FakeMaildrop ( [] )
		result = pop3_fetch.fetch_account ( ZAPHOD, MemoryMailStore(), channel_factory = MaildropFactory ( maildrop ) )
		self.assertEqual ( result.listed, [] )
		self.assertEqual ( result.stored, [] )
		self.assertEqual ( maildrop.commands, [ 'USER zaphod', 'PASS beeblebrox', 'LIST', 'QUIT' ] )
	
	def test_retrieve_failure_deletes_nothing ( self ) -> None:
		maildrop = FakeMaildrop ( MESSAGES, errors = { 'RETR': 'message vanished' } )
		store = MemoryMailStore()
		with self.assertRaises ( ProtocolError ):
			pop3_fetch.fetch_account ( ZAPHOD, store, channel_factory = MaildropFactory ( maildrop ) )
		self.assertEqual ( store.mails ( ZAPHOD ), [] )
		self.assertFalse ( any ( cmd.startswith ( 'DELE' ) for cmd in maildrop.commands ) )
		self.assertEqual ( maildrop.commands[-1], 'QUIT' )
	
	def test_store_failure_deletes_nothing ( self ) -> None:
		maildrop = FakeMaildrop ( MESSAGES )
		store = FailingStore ( fail_after = 2 )
		with self.assertRaises ( OSError ):
			pop3_fetch.fetch_account ( ZAPHOD, store, channel_factory = MaildropFactory ( maildrop ) )
		self.assertEqual ( len ( store.mails ( ZAPHOD ) ), 2 )
		self.assertEqual ( maildrop.deleted, [] )
	
	def test_caller_owns_disconnect ( self ) -> None:
		maildrop = FakeMaildrop ( MESSAGES[:1] )
		cli = Client ( ZAPHOD, channel_factory = MaildropFactory ( maildrop ) )
		pop3_fetch.fetch_mails ( cli, MemoryMailStore() )
		self.assertIs ( cli.phase, Phase.TRANSACTION )
		self.assertNotIn ( 'QUIT', maildrop.commands )
		cli.disconnect()
		self.assertEqual ( maildrop.deleted, [ '1' ] )
		with self.assertRaises ( ProtocolStateError ):
			cli.list()
	
	def test_format_summary ( self ) -> None:
		self.assertEqual (
			pop3_fetch.format_summary ( ZAPHOD, [ Mail ( 'Subject: hi\r\n' ) ] ),
			'--------------------\n'
			'POP3 mail download\n'
			"Account: Account('zaphod'@'milliways.local':110)\n"
			"1 Mail(13 chars, subject='hi')",
		)


class RunnerTests ( unittest.TestCase ):
	def test_fetch_all ( self ) -> None:
		arthur = Account ( 'magrathea.local', 110, 'arthur', 'tea' )
		marvin = Account ( 'unreachable.local', 110, 'marvin', 'brain' )
		maildrops = {
			'milliways.local': FakeMaildrop ( MESSAGES ),
			'magrathea.local': FakeMaildrop ( MESSAGES[:1], username = 'arthur', password = 'tea' ),
		}
		factories = { host: MaildropFactory ( md ) for host, md in maildrops.items() }
		
		def factory ( host: str, port: int, timeout: Opt[float] = None ) -> LineChannel:
			if host not in factories:
				raise Pop3ConnectionError ( f'Unable to connect to {host=} {port=}' )
			return factories[host] ( host, port, timeout )
		
		store = MemoryMailStore()
		with quiet_logging():
			results = pop3_fetch.fetch_all ( [ ZAPHOD, arthur, marvin ], store, channel_factory = factory )
		
		self.assertEqual ( set ( results ), { ZAPHOD, arthur, marvin } )
		self.assertIsInstance ( results[marvin], Pop3ConnectionError )
		zaphod_result = results[ZAPHOD]
		assert isinstance ( zaphod_result, pop3_fetch.FetchResult )
		self.assertEqual ( len ( zaphod_result.stored ), 3 )
		self.assertEqual ( len ( store.mails ( arthur ) ), 1 )
		self.assertEqual ( maildrops['magrathea.local'].deleted, [ '1' ] )
	
	def test_fetch_accounts_in_trio ( self ) -> None:
		maildrop = FakeMaildrop ( MESSAGES )
		store = MemoryMailStore()
		
		async def _test() -> None:
			results = await pop3_fetch.fetch_accounts (
				[ ZAPHOD ], store, channel_factory = MaildropFactory ( maildrop ),
			)
			self.assertEqual ( list ( results ), [ ZAPHOD ] )
		
		trio.run ( _test )
		self.assertEqual ( len ( store.mails ( ZAPHOD ) ), 3 )


if __name__ == '__main__':
	logging.basicConfig ( level = logging.DEBUG )
	unittest.main()
