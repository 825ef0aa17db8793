"""Semantic-version parsing, range matching and feature negotiation.

Versions follow ``major.minor.patch[-prerelease][+build]``. A range is a
whitespace-separated list of conditions that must all hold, each written as
``<op><version>`` with op one of ``"" = > >= < <= ^ ~``.
"""

import logging
import re
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import (
    Dict,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from ..errors import VersionParseError
from .features import CLIFeature, FeatureLike, coerce_features

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(
    r"^(\d+)\.(\d+)\.(\d+)(?:-([a-zA-Z0-9.-]+))?(?:\+([a-zA-Z0-9.-]+))?$"
)
_CONDITION_RE = re.compile(r"^(>=|<=|>|<|=|\^|~)?(.+)$")

RANGE_OPERATORS = ("=", ">", ">=", "<", "<=", "^", "~")


@dataclass(frozen=True)
class ParsedVersion:
    major: int
    minor: int
    patch: int
    prerelease: Optional[str] = None
    build: Optional[str] = None

    @property
    def core(self) -> str:
        """``major.minor.patch`` without prerelease or build metadata."""
        return f"{self.major}.{self.minor}.{self.patch}"

    def __str__(self) -> str:
        text = self.core
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text


@dataclass(frozen=True)
class RangeCondition:
    operator: str
    version: ParsedVersion

    def __str__(self) -> str:
        op = "" if self.operator == "=" else self.operator
        return f"{op}{self.version}"


VersionLike = Union[str, ParsedVersion]


def parse_version(version: VersionLike) -> ParsedVersion:
    """Parse a semantic version string.

    A single leading ``v`` or ``=`` is tolerated. Raises VersionParseError on
    malformed input.
    """
    if isinstance(version, ParsedVersion):
        return version
    if not isinstance(version, str):
        raise VersionParseError(repr(version))

    text = version.strip()
    if text[:1] in ("v", "="):
        text = text[1:].strip()

    match = _VERSION_RE.match(text)
    if not match:
        raise VersionParseError(version)

    return ParsedVersion(
        major=int(match.group(1)),
        minor=int(match.group(2)),
        patch=int(match.group(3)),
        prerelease=match.group(4),
        build=match.group(5),
    )


def compare_versions(a: VersionLike, b: VersionLike) -> int:
    """Return -1, 0 or 1 as ``a`` sorts before, equal to or after ``b``.

    Build metadata is ignored. A prerelease sorts below its release.
    """
    va = parse_version(a)
    vb = parse_version(b)

    for x, y in ((va.major, vb.major), (va.minor, vb.minor), (va.patch, vb.patch)):
        if x != y:
            return -1 if x < y else 1

    if va.prerelease and not vb.prerelease:
        return -1
    if not va.prerelease and vb.prerelease:
        return 1
    if va.prerelease and vb.prerelease and va.prerelease != vb.prerelease:
        return -1 if va.prerelease < vb.prerelease else 1
    return 0


def parse_range(version_range: str) -> List[RangeCondition]:
    """Parse a range into AND-combined conditions.

    An empty or blank range has no conditions and therefore matches every
    version. Any malformed condition raises VersionParseError.
    """
    if not isinstance(version_range, str):
        raise VersionParseError(repr(version_range), "version range")

    conditions: List[RangeCondition] = []
    for part in version_range.split():
        match = _CONDITION_RE.match(part)
        if not match:
            raise VersionParseError(part, "range condition")
        operator = match.group(1) or "="
        try:
            version = parse_version(match.group(2))
        except VersionParseError:
            raise VersionParseError(version_range, "version range") from None
        conditions.append(RangeCondition(operator, version))
    return conditions


def _satisfies_condition(version: ParsedVersion, condition: RangeCondition) -> bool:
    target = condition.version
    cmp = compare_versions(version, target)
    op = condition.operator

    if op == "=":
        return cmp == 0
    if op == ">":
        return cmp > 0
    if op == ">=":
        return cmp >= 0
    if op == "<":
        return cmp < 0
    if op == "<=":
        return cmp <= 0
    if op == "^":
        if version.major != target.major:
            return False
        if target.major == 0 and version.minor != target.minor:
            return False
        return cmp >= 0
    if op == "~":
        return (
            version.major == target.major
            and version.minor == target.minor
            and cmp >= 0
        )
    return False


def satisfies_range(version: VersionLike, version_range: str) -> bool:
    """True iff ``version`` meets every condition of ``version_range``.

    Malformed input never raises; it simply does not satisfy.
    """
    try:
        parsed = parse_version(version)
        conditions = parse_range(version_range)
    except VersionParseError:
        return False
    return all(_satisfies_condition(parsed, c) for c in conditions)


def is_valid_range(version_range: str) -> bool:
    try:
        parse_range(version_range)
    except VersionParseError:
        return False
    return True


@dataclass(frozen=True)
class VersionCompatibility:
    """Outcome of negotiating a requested range against an installed version."""

    compatible: bool
    negotiated_version: str
    warnings: Tuple[str, ...] = ()
    required_shims: Tuple[str, ...] = ()
    missing_features: Tuple[CLIFeature, ...] = ()

    def to_dict(self) -> Dict[str, object]:
        return {
            "compatible": self.compatible,
            "negotiated_version": self.negotiated_version,
            "warnings": list(self.warnings),
            "required_shims": list(self.required_shims),
            "missing_features": [f.value for f in self.missing_features],
        }


@dataclass
class _VersionEntry:
    version: str
    parsed: ParsedVersion
    features: FrozenSet[CLIFeature] = field(default_factory=frozenset)


class VersionNegotiator:
    """Per-host table of library versions, their features and known shims.

    The negotiator starts empty; adapters seed it with their own feature
    tables when they are constructed.
    """

    def __init__(self) -> None:
        self._versions: Dict[str, List[_VersionEntry]] = {}
        self._shims: Dict[str, Tuple[str, ...]] = {}

    def register_version(
        self, library: str, version: str, features: Iterable[FeatureLike]
    ) -> None:
        """Add or replace the feature set of ``library`` at ``version``."""
        parsed = parse_version(version)
        entry = _VersionEntry(str(parsed), parsed, coerce_features(features))
        entries = self._versions.setdefault(library, [])

        for index, existing in enumerate(entries):
            if compare_versions(existing.parsed, parsed) == 0:
                entries[index] = entry
                return

        entries.append(entry)
        entries.sort(
            key=cmp_to_key(lambda a, b: compare_versions(a.parsed, b.parsed))
        )

    def register_shim(
        self, from_version: str, to_version: str, shims: Sequence[str]
    ) -> None:
        self._shims[f"{from_version}->{to_version}"] = tuple(shims)

    def get_required_shims(self, from_version: str, to_version: str) -> List[str]:
        return list(self._shims.get(f"{from_version}->{to_version}", ()))

    def get_registered_versions(self, library: str) -> List[str]:
        return [e.version for e in self._versions.get(library, [])]

    def has_library(self, library: str) -> bool:
        return bool(self._versions.get(library))

    def get_features_for_version(
        self, library: str, version_or_range: str
    ) -> List[CLIFeature]:
        """Features implied by a concrete version or by a range.

        The highest table entry satisfying ``version_or_range`` wins. Failing
        that, the highest entry not exceeding the first condition's version is
        used, so ``"6.7.4"`` resolves to the ``6.7.0`` entry.
        """
        entries = self._versions.get(library, [])
        if not entries:
            return []

        for entry in reversed(entries):
            if satisfies_range(entry.parsed, version_or_range):
                return sorted(entry.features, key=_feature_order)

        try:
            conditions = parse_range(version_or_range)
        except VersionParseError:
            return []
        if not conditions:
            return []

        bound = conditions[0].version
        for entry in reversed(entries):
            if compare_versions(entry.parsed, bound) <= 0:
                return sorted(entry.features, key=_feature_order)
        return []

    def is_feature_available(
        self, library: str, version: str, feature: FeatureLike
    ) -> bool:
        wanted = coerce_features([feature])
        return wanted <= set(self.get_features_for_version(library, version))

    def negotiate(
        self, library: str, requested_range: str, available_version: str
    ) -> VersionCompatibility:
        """Check ``available_version`` against ``requested_range``.

        ``compatible`` is plain range satisfaction. Missing features are
        reported independently, so a compatible result may still carry
        warnings.
        """
        warnings: List[str] = []
        required_shims: List[str] = []

        compatible = satisfies_range(available_version, requested_range)

        if not compatible:
            try:
                conditions = parse_range(requested_range)
            except VersionParseError:
                conditions = []
                warnings.append(f"Invalid version range: {requested_range!r}")

            if conditions:
                requested_version = conditions[0].version.core
                shims = self.get_required_shims(requested_version, available_version)
                if shims:
                    required_shims.extend(shims)
                    warnings.append(
                        f"Version mismatch: requested {requested_range}, "
                        f"available {available_version}. Shims may help."
                    )
                else:
                    warnings.append(
                        f"Version mismatch: requested {requested_range}, "
                        f"available {available_version}. No shims available."
                    )
            elif not warnings:
                warnings.append(
                    f"Version mismatch: requested {requested_range}, "
                    f"available {available_version}."
                )

        requested_features = self.get_features_for_version(library, requested_range)
        available_features = set(
            self.get_features_for_version(library, available_version)
        )
        missing = tuple(f for f in requested_features if f not in available_features)

        if missing:
            warnings.append(
                f"Missing features in {available_version}: "
                + ", ".join(f.value for f in missing)
            )

        if warnings:
            logger.debug(
                f"Negotiated {library}@{requested_range} against "
                f"{available_version}: compatible={compatible}, warnings={warnings}"
            )

        return VersionCompatibility(
            compatible=compatible,
            negotiated_version=available_version,
            warnings=tuple(warnings),
            required_shims=tuple(required_shims),
            missing_features=missing,
        )


_FEATURE_ORDER = {feature: index for index, feature in enumerate(CLIFeature)}


def _feature_order(feature: CLIFeature) -> int:
    return _FEATURE_ORDER[feature]
