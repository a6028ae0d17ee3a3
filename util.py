from typing import Union

BYTES = Union[bytes,bytearray,memoryview]

def b2s ( b: BYTES, encoding: str = 'utf-8', errors: str = 'replace' ) -> str:
	return bytes ( b ).decode ( encoding, errors )

def s2b ( s: str, encoding: str = 'utf-8', errors: str = 'strict' ) -> bytes:
	return s.encode ( encoding, errors )
