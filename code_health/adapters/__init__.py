"""Tool output normalizers, one adapter per upstream tool family."""

from code_health.adapters.architecture import ArchitectureAdapter
from code_health.adapters.base import Adapter, Empty, Structured, TextFallback
from code_health.adapters.deadcode import KnipAdapter
from code_health.adapters.dependencies import (
    MadgeCircularAdapter,
    MadgeOrphansAdapter,
    dependency_graph_result,
)
from code_health.adapters.duplicates import JscpdAdapter
from code_health.adapters.linters import EslintAdapter, OxlintAdapter
from code_health.adapters.typescript import TypeScriptAdapter

__all__ = [
    "Adapter",
    "ArchitectureAdapter",
    "Empty",
    "EslintAdapter",
    "JscpdAdapter",
    "KnipAdapter",
    "MadgeCircularAdapter",
    "MadgeOrphansAdapter",
    "OxlintAdapter",
    "Structured",
    "TextFallback",
    "TypeScriptAdapter",
    "dependency_graph_result",
]
