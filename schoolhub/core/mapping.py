"""
Explicit field-by-field mapping between transport models and entities.

The mapper is configured once at startup from a set of profiles and is
immutable afterwards; request handlers only read it:

    init_mapper(MAPPING_PROFILES)      # application startup
    get_mapper().map(payload, Teacher) # per request
    reset_mapper()                     # application shutdown
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

TargetT = TypeVar("TargetT")


def strip_text(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def blank_to_none(value: Any) -> Any:
    """Normalize optional references: empty or whitespace-only becomes None."""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


@dataclass(frozen=True)
class FieldMap:
    source: str
    target: str
    convert: Callable[[Any], Any] | None = None

    def read(self, obj: Any) -> Any:
        value = getattr(obj, self.source)
        return self.convert(value) if self.convert else value


@dataclass(frozen=True)
class MappingProfile:
    """How to copy one source type onto one target type."""

    source: type
    target: type
    fields: tuple[FieldMap, ...]

    @classmethod
    def same_names(
        cls,
        source: type,
        target: type,
        names: Iterable[str],
        converters: dict[str, Callable[[Any], Any]] | None = None,
    ) -> "MappingProfile":
        converters = converters or {}
        return cls(
            source,
            target,
            tuple(FieldMap(name, name, converters.get(name)) for name in names),
        )


class EntityMapper:
    """Read-only registry of mapping profiles keyed by (source, target)."""

    def __init__(self, profiles: Iterable[MappingProfile]) -> None:
        table: dict[tuple[type, type], MappingProfile] = {}
        for profile in profiles:
            key = (profile.source, profile.target)
            if key in table:
                raise ValueError(
                    f"Duplicate mapping profile {profile.source.__name__} -> "
                    f"{profile.target.__name__}"
                )
            table[key] = profile
        self._profiles = MappingProxyType(table)

    def _profile(self, source: Any, target_type: type) -> MappingProfile:
        try:
            return self._profiles[(type(source), target_type)]
        except KeyError:
            raise LookupError(
                f"No mapping from {type(source).__name__} to {target_type.__name__}"
            ) from None

    def map(self, source: Any, target_type: type[TargetT]) -> TargetT:
        """Build a new target_type instance from source."""
        profile = self._profile(source, target_type)
        return target_type(**{f.target: f.read(source) for f in profile.fields})

    def map_many(self, sources: Iterable[Any], target_type: type[TargetT]) -> list[TargetT]:
        return [self.map(source, target_type) for source in sources]

    def map_onto(self, source: Any, target: TargetT) -> TargetT:
        """Copy mapped fields from source onto an existing target instance."""
        profile = self._profile(source, type(target))
        for field_map in profile.fields:
            setattr(target, field_map.target, field_map.read(source))
        return target


_mapper: EntityMapper | None = None


def init_mapper(profiles: Iterable[MappingProfile]) -> EntityMapper:
    """Build the process-wide mapper. Calling it again is a no-op."""
    global _mapper
    if _mapper is None:
        _mapper = EntityMapper(profiles)
        logger.info("Entity mapper configured")
    return _mapper


def get_mapper() -> EntityMapper:
    if _mapper is None:
        raise RuntimeError("Entity mapper is not configured; call init_mapper() at startup")
    return _mapper


def reset_mapper() -> None:
    global _mapper
    _mapper = None
