from .pattern import IMatcher, RegexMatcher, LiteralMatcher, TermTracker, compile_query, compile_regex
from .scanner import MatchScanner
from .index import MatchIndex
from .preview import ReplacementPreviewer, PreviewContext, expand_template, apply_control_sequences
from .batch import BatchReplaceEngine, splice_matches
from .history import UndoHistory


__all__ = [
    # Pattern
    "IMatcher", "RegexMatcher", "LiteralMatcher", "TermTracker", "compile_query", "compile_regex",
    # Scan
    "MatchScanner", "MatchIndex",
    # Preview
    "ReplacementPreviewer", "PreviewContext", "expand_template", "apply_control_sequences",
    # Replace & undo
    "BatchReplaceEngine", "splice_matches", "UndoHistory",
]
