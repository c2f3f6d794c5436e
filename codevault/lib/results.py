"""Result values returned across the service boundary.

Expected negative outcomes (unknown id, bad input, wrong credentials) come
back as values so callers branch on them instead of catching exceptions.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar('T')

@dataclass(frozen=True)
class Ok(Generic[T]):
	value: T
	ok = True

@dataclass(frozen=True)
class NotFound:
	message: str
	ok = False

@dataclass(frozen=True)
class Invalid:
	message: str
	ok = False

@dataclass(frozen=True)
class Denied:
	message: str
	ok = False

@dataclass(frozen=True)
class StorageFailure:
	message: str
	ok = False

@dataclass(frozen=True)
class CryptoFailure:
	message: str
	ok = False

Failure = Union[NotFound, Invalid, Denied, StorageFailure, CryptoFailure]
Result = Union[Ok[Any], Failure]
