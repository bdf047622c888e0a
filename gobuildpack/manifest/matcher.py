"""Go version constraint matching against the buildpack manifest.

Constraint forms:
  1.12.3        exact      the literal version must be in the manifest
  1.12.x, 1.12  family     greatest 1.12.* version
  1.x, 1        major      greatest 1.* version
  None / ""     latest     greatest version overall

Families are matched with a ``==1.12.*`` specifier and candidates are
ordered by ``packaging.version.Version``. Manifest entries that are not
plain release versions (``tip``, ``1.13beta1``) are never selected.

Anything else (``1.x.3``, ``>=1.11``, ``go1.12``) is rejected with the same
error as an unsatisfiable constraint; callers cannot tell the two apart.
"""

import re
from collections.abc import Iterable
from typing import Optional

from packaging.specifiers import SpecifierSet
from packaging.version import InvalidVersion, Version

from gobuildpack.staging.errors import VersionResolutionError

_CONSTRAINT_RE = re.compile(r"^(\d+)(?:\.(\d+|x))?(?:\.(\d+|x))?$")

WILDCARD = "x"


def parse_version(raw: str) -> Optional[Version]:
    """Parse a manifest version, or None when it is not a plain release."""
    try:
        parsed = Version(raw.strip())
    except InvalidVersion:
        return None
    if parsed.is_prerelease or parsed.is_postrelease or parsed.local or parsed.epoch:
        return None
    if len(parsed.release) > 3 or not raw.strip()[0].isdigit():
        return None
    return parsed


def _family_specifier(constraint: str) -> Optional[SpecifierSet]:
    """Map ``1.12.x``/``1.12``/``1.x``/``1`` to a ``==<prefix>.*`` specifier."""
    match = _CONSTRAINT_RE.match(constraint)
    if not match:
        return None
    prefix = [match.group(1)]
    for part in match.groups()[1:]:
        if part is None or part == WILDCARD:
            break
        prefix.append(part)
    # A number may not follow a wildcard (1.x.3).
    rest = match.groups()[len(prefix):]
    if any(part not in (None, WILDCARD) for part in rest):
        return None
    return SpecifierSet(f"=={'.'.join(prefix)}.*")


def _is_exact(constraint: str) -> bool:
    return constraint.count(".") == 2 and WILDCARD not in constraint


def resolve(constraint: Optional[str], versions: Iterable[str]) -> str:
    """Select exactly one version from the manifest for a constraint.

    Raises VersionResolutionError when nothing satisfies the constraint or
    the constraint cannot be parsed.
    """
    candidates: list[tuple[Version, str]] = []
    for raw in versions:
        parsed = parse_version(raw)
        if parsed is not None:
            candidates.append((parsed, raw))
    text = (constraint or "").strip()

    if not text:
        if not candidates:
            raise VersionResolutionError("latest")
        return max(candidates, key=lambda item: item[0])[1]

    specifier = _family_specifier(text)
    if specifier is None:
        raise VersionResolutionError(text)

    if _is_exact(text):
        for _parsed, raw in candidates:
            if raw == text:
                return raw
        raise VersionResolutionError(text)

    matching = [(parsed, raw) for parsed, raw in candidates if parsed in specifier]
    if not matching:
        raise VersionResolutionError(text)
    return max(matching, key=lambda item: item[0])[1]
