from __future__ import annotations

from typing import Iterable, Optional, TypeVar

# Certification qualifiers that vary between otherwise identical trades
# ("Elektroinstallateur EFZ" vs "Elektroinstallateur").
IGNORED_QUALIFIERS = frozenset({"efz", "eba", "hf", "bp", "dipl", "ing", "bsc", "msc"})

R = TypeVar("R")


def core_role_name(role: Optional[str]) -> str:
    if not role:
        return ""
    words = [w for w in role.lower().split() if w not in IGNORED_QUALIFIERS]
    return " ".join(words).strip()


def _cores_match(a: str, b: str) -> bool:
    if not a or not b:
        return False
    return a in b or b in a


def roles_match(position_title: Optional[str], searched_role: Optional[str]) -> bool:
    """
    True when the core names overlap as substrings in either direction.
    An empty core never matches, not even another empty one.
    """
    return _cores_match(core_role_name(position_title), core_role_name(searched_role))


def find_best_matching_role(
        position_title: Optional[str],
        roles: Iterable[R],
        *,
        name_of=lambda r: r,
) -> Optional[R]:
    """
    Most specific (longest core name) role matching the title; first one wins on ties.
    `name_of` extracts the role name when roles are not plain strings.
    """
    core_position = core_role_name(position_title)
    if not core_position:
        return None

    best: Optional[R] = None
    best_len = 0
    for role in roles:
        core = core_role_name(name_of(role))
        if not _cores_match(core_position, core):
            continue
        if len(core) > best_len:
            best = role
            best_len = len(core)
    return best
