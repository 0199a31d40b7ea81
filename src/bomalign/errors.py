"""Exception hierarchy.

Resolution is all-or-nothing: the first error raised aborts the pass and
no partial graph is returned. None of these are transient, so callers
surface them instead of retrying.
"""

from typing import Iterable, Optional


class BomAlignError(Exception):
    """Base class for every error raised by this package."""


class DescriptorError(BomAlignError):
    """A build descriptor declaration is malformed."""


class ExportError(BomAlignError):
    """A resolution could not be written to disk."""


class ResolutionError(BomAlignError):
    """Base class for failures while resolving a descriptor."""


class UnresolvedVersionError(ResolutionError):
    """A symbolic version reference could not be looked up."""

    def __init__(self, reference: str, module=None, reason: Optional[str] = None):
        self.reference = reference
        self.module = module
        self.reason = reason
        target = f" for {module}" if module is not None else ""
        detail = f": {reason}" if reason else ""
        super().__init__(f"Unable to resolve version '{reference}'{target}{detail}")


class ConflictingVersionError(ResolutionError):
    """Requirements for the same module name different pins or selectors."""

    def __init__(self, module, versions: Iterable[str]):
        self.module = module
        self.versions = tuple(sorted(set(versions)))
        super().__init__(
            f"Conflicting versions for {module}: {', '.join(self.versions)}"
        )


class ExcludedVersionError(ResolutionError):
    """A resolved version matches an exclusion rule."""

    def __init__(self, module, version: str, rule=None):
        self.module = module
        self.version = version
        self.rule = rule
        by_rule = f" by rule {rule}" if rule is not None else ""
        super().__init__(f"Version {version} of {module} is excluded{by_rule}")


class AmbiguousProfileError(ResolutionError):
    """Two modules tie for the same priority position on a variant axis."""

    def __init__(self, axis: str, entry: str, modules):
        self.axis = axis
        self.entry = entry
        self.modules = tuple(modules)
        names = ", ".join(str(m) for m in self.modules)
        super().__init__(
            f"Ambiguous selection for axis '{axis}': priority entry '{entry}' matches {names}"
        )
