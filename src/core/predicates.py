# src/core/predicates.py — v1
"""Build filters supplied by callers of the lister.

The lister only needs ``predicate(build) -> bool``; it never inspects what a
filter means. Plain callables are wrapped with ``as_predicate``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Protocol, runtime_checkable

from kitebuilds.core.models import Build


@runtime_checkable
class BuildPredicate(Protocol):
    def predicate(self, build: Build) -> bool: ...


@dataclass(frozen=True)
class AcceptAll:
    """Keeps every build."""

    def predicate(self, build: Build) -> bool:
        return True


@dataclass(frozen=True)
class FuncPredicate:
    """Adapter for a plain ``Callable[[Build], bool]``."""

    func: Callable[[Build], bool]

    def predicate(self, build: Build) -> bool:
        return bool(self.func(build))


@dataclass(frozen=True)
class PipelinePredicate:
    """Keeps builds of the named pipelines."""

    names: frozenset[str]

    def predicate(self, build: Build) -> bool:
        return build.pipeline_name in self.names


@dataclass(frozen=True)
class BranchPredicate:
    """Keeps builds of the named branches."""

    branches: frozenset[str]

    def predicate(self, build: Build) -> bool:
        return build.branch in self.branches


@dataclass(frozen=True)
class AllOf:
    """Logical AND; an empty conjunction keeps everything."""

    predicates: tuple[BuildPredicate, ...]

    def predicate(self, build: Build) -> bool:
        return all(p.predicate(build) for p in self.predicates)


def as_predicate(value: BuildPredicate | Callable[[Build], bool] | None) -> BuildPredicate:
    """Normalize ``value`` into a BuildPredicate."""
    if value is None:
        return AcceptAll()
    if isinstance(value, BuildPredicate):
        return value
    if callable(value):
        return FuncPredicate(value)
    raise TypeError(f"Not a build predicate: {value!r}")


def build_filter(
    pipelines: Iterable[str] = (),
    branches: Iterable[str] = (),
) -> BuildPredicate:
    """Combine optional pipeline and branch filters into one predicate."""
    parts: list[BuildPredicate] = []
    pipelines = frozenset(pipelines)
    branches = frozenset(branches)
    if pipelines:
        parts.append(PipelinePredicate(pipelines))
    if branches:
        parts.append(BranchPredicate(branches))
    if not parts:
        return AcceptAll()
    if len(parts) == 1:
        return parts[0]
    return AllOf(tuple(parts))
