"""Rule normalization, compilation, scoring and indexing."""

from .compiler import NEVER, Matcher, compile_pattern
from .index import (
    ALLOW,
    DENY,
    EMPTY_INDEX,
    CompileDiagnostic,
    CompiledRule,
    RuleIndex,
    compile_rules,
)
from .keywords import Keyword, first_keyword_match, parse_keywords
from .normalize import (
    NormalizedPattern,
    NormalizedUrl,
    PatternError,
    is_internal_url,
    normalize_pattern,
    normalize_url,
)
from .specificity import score

__all__ = [
    "ALLOW",
    "DENY",
    "EMPTY_INDEX",
    "NEVER",
    "CompileDiagnostic",
    "CompiledRule",
    "Keyword",
    "Matcher",
    "NormalizedPattern",
    "NormalizedUrl",
    "PatternError",
    "RuleIndex",
    "compile_pattern",
    "compile_rules",
    "first_keyword_match",
    "is_internal_url",
    "normalize_pattern",
    "normalize_url",
    "parse_keywords",
    "score",
]
