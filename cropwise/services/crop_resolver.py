"""Free-text crop name matching against reference table keys."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence


def normalize_crop_name(crop_name: str) -> str:
	return crop_name.upper().strip()


class CropNameResolver:
	"""Maps a farmer-typed crop name onto one key of a reference table.

	Loose mode (the default) accepts the first key, in table order, where the
	key or one of its aliases contains the input or is contained by it. It is
	a first-acceptable-match policy, not a best match, so short inputs can
	land on an unrelated crop. Strict mode only accepts an exact match on the
	key or one of its aliases.
	"""

	def __init__(self, aliases: Mapping[str, Sequence[str]] | None = None, *, strict: bool = False):
		self.aliases: dict[str, tuple[str, ...]] = {
			key: tuple(normalize_crop_name(alias) for alias in values)
			for key, values in (aliases or {}).items()
		}
		self.strict = strict

	def match_key(self, crop_name: str, keys: Iterable[str]) -> str | None:
		normalized = normalize_crop_name(crop_name or "")
		if not normalized:
			return None

		ordered = list(keys)
		for key in ordered:
			if normalize_crop_name(key) == normalized:
				return key

		for key in ordered:
			for candidate in self._candidates(key):
				if self._matches(normalized, candidate):
					return key
		return None

	def _candidates(self, key: str) -> tuple[str, ...]:
		return (normalize_crop_name(key), *self.aliases.get(key, ()))

	def _matches(self, normalized: str, candidate: str) -> bool:
		if not candidate:
			return False
		if self.strict:
			return candidate == normalized
		return candidate in normalized or normalized in candidate
