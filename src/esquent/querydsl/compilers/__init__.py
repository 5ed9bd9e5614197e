from typing import Optional

from esquent.constants import Dialect
from esquent.profile import EngineProfile

from .base import BaseCompiler
from .boolean import BoolQueryCompiler, bool_compiler
from .filtered import FilteredQueryCompiler, filtered_compiler

__all__ = (
    "BaseCompiler",
    "BoolQueryCompiler",
    "bool_compiler",
    "FilteredQueryCompiler",
    "filtered_compiler",
    "get_compiler",
)


def get_compiler(profile: Optional[EngineProfile] = None) -> BaseCompiler:
    """Return the compiler matching the engine generation described by `profile`."""
    profile = profile or EngineProfile.from_settings()
    if profile.dialect == Dialect.FILTERED:
        return filtered_compiler
    return bool_compiler
