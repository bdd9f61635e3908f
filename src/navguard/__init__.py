"""navguard: wildcard URL allow/deny rules and block decisions.

The core exposes two operations:
  - compile_rules(allow_rules, deny_rules) -> RuleIndex
  - decide(url, index, allow_keywords, deny_keywords, mode, temp_allow) -> Decision
"""

from .decision import Decision, Mode, TraceEntry, decide
from .rules import (
    CompileDiagnostic,
    CompiledRule,
    Keyword,
    RuleIndex,
    compile_rules,
    parse_keywords,
)

__version__ = "0.1.0"

__all__ = [
    "CompileDiagnostic",
    "CompiledRule",
    "Decision",
    "Keyword",
    "Mode",
    "RuleIndex",
    "TraceEntry",
    "compile_rules",
    "decide",
    "parse_keywords",
]
