from __future__ import annotations

# python imports:
from functools import partial
import logging
from typing import Dict, Iterable, List, NamedTuple, Optional as Opt, Union

import packaging.version # pip install packaging
import trio # pip install trio

# pop3_fetch imports:
from line_channel import ChannelFactory, LineChannel
from mail_store import MailStore
from pop3_proto import Account, Mail, MailInfo
from pop3_sync import Client

logger = logging.getLogger ( __name__ )

__version__ = packaging.version.parse ( '0.1.0' )


class FetchResult ( NamedTuple ):
	account: Account
	listed: List[MailInfo]
	stored: List[Mail]
	deleted: List[MailInfo]


def format_summary ( account: Account, stored: Iterable[Mail] ) -> str:
	lines = [
		'--------------------',
		'POP3 mail download',
		f'Account: {account}',
	]
	lines.extend ( f'{n} {mail}' for n, mail in enumerate ( stored, 1 ) )
	return '\n'.join ( lines )


def fetch_mails ( client: Client, store: MailStore ) -> FetchResult:
	'''
	Run one list -> retrieve -> store -> delete cycle on a disconnected client.
	
	Any failure propagates and leaves the remaining steps undone. The caller
	owns the client and must disconnect it (normally with a `with` block).
	'''
	log = logger.getChild ( 'fetch_mails' )
	account = client.account
	store.register_account ( account )
	
	client.connect()
	client.authorize()
	listed = client.list()
	log.debug ( f'{account}: {len(listed)} message(s) waiting' )
	
	mails = [ client.retrieve ( info ) for info in listed ]
	
	stored: List[Mail] = []
	persisted: List[MailInfo] = []
	for info, mail in zip ( listed, mails ):
		stored.append ( store.persist ( account, mail ) )
		persisted.append ( info )
	
	log.info ( format_summary ( account, stored ) )
	
	for info in persisted:
		client.delete ( info )
	
	return FetchResult ( account, listed, stored, persisted )


def fetch_account ( account: Account, store: MailStore, *,
	timeout: Opt[float] = None,
	channel_factory: ChannelFactory = LineChannel.open,
) -> FetchResult:
	with Client ( account, timeout = timeout, channel_factory = channel_factory ) as client:
		return fetch_mails ( client, store )


async def fetch_accounts ( accounts: Iterable[Account], store: MailStore, *,
	timeout: Opt[float] = None,
	channel_factory: ChannelFactory = LineChannel.open,
) -> Dict[Account,Union[FetchResult,Exception]]:
	'''
	Fetch every account concurrently, one worker thread per session.
	
	A failing account is logged and reported in the result; it does not stop the others.
	'''
	log = logger.getChild ( 'fetch_accounts' )
	results: Dict[Account,Union[FetchResult,Exception]] = {}
	
	async def _fetch_one ( account: Account ) -> None:
		def _run() -> FetchResult:
			return fetch_account ( account, store, timeout = timeout, channel_factory = channel_factory )
		try:
			results[account] = await trio.to_thread.run_sync ( _run )
		except Exception as e:
			log.exception ( f'fetch failed for {account}:' )
			results[account] = e
	
	async with trio.open_nursery() as nursery:
		for account in accounts:
			nursery.start_soon ( _fetch_one, account )
	return results


def fetch_all ( accounts: Iterable[Account], store: MailStore, *,
	timeout: Opt[float] = None,
	channel_factory: ChannelFactory = LineChannel.open,
) -> Dict[Account,Union[FetchResult,Exception]]:
	return trio.run ( partial ( fetch_accounts,
		accounts, store, timeout = timeout, channel_factory = channel_factory,
	) )
