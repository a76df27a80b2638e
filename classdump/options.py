"""Run configuration: which methods get analysed and how failures are treated."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Options:
    """
    ``analyse`` is None to analyse every method, otherwise the set of simple
    method names to analyse. ``skip`` is applied after it.
    """

    analyse: frozenset[str] | None = None
    skip: frozenset[str] = field(default_factory=frozenset)
    raise_on_failure: bool = True

    @classmethod
    def from_args(cls, args):
        if getattr(args, 'no_analyse', False):
            selected = frozenset()
        elif getattr(args, 'analyse', None):
            selected = frozenset(args.analyse)
        else:
            selected = None
        return cls(
            analyse=selected,
            skip=frozenset(getattr(args, 'skip', None) or ()),
            raise_on_failure=not getattr(args, 'keep_going', False),
        )

    def should_analyse(self, name):
        if name in self.skip:
            return False
        return self.analyse is None or name in self.analyse
