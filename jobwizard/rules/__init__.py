"""rules.yml access, rejection engine, flag scanner and safe writer."""

from .engine import RejectionDecision, RulesEngine
from .loader import DEFAULT_FILTERS, RulesLoader, compile_patterns, merge_with_defaults
from .rules import Rules, RulesProvider, load_rules_data
from .scanner import RulesScanner, extract_potential_skills
from .writer import SafeRulesWriter

__all__ = [
    "Rules",
    "RulesProvider",
    "load_rules_data",
    "RulesLoader",
    "DEFAULT_FILTERS",
    "merge_with_defaults",
    "compile_patterns",
    "RulesEngine",
    "RejectionDecision",
    "RulesScanner",
    "extract_potential_skills",
    "SafeRulesWriter",
]
