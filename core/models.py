"""Compatibility re-exports of the domain dataclasses and enums."""

from core.domain import *  # noqa: F401,F403
from core.domain import __all__ as _domain_all

__all__ = list(_domain_all)
