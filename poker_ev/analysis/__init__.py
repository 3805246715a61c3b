"""Opponent response-distribution analysis of hero decisions.

Rebuilds opponent ranges from a hand's action history, predicts how the
responder folds, calls or raises against each hero action, splits the
range into the combos behind each response, and prices the hero's
action against alternatives.

Key public API:
    HandAnalyzerProtocol -- Interface for swappable per-hand analyzers
    HandAnalyzer         -- Built-in analyzer (ranges + estimator + EV)
    analyze_hands        -- Batch driver with cancellation and workers
    HandAnalysis         -- Per-hand output (one ActionAnalysis per decision)
    AnalysisConfig       -- Rake, thresholds, neutral prior, seed salt
"""

from poker_ev.analysis.config import AnalysisConfig, load_analysis_config
from poker_ev.analysis.data_structures import (
    ActionAnalysis,
    FrequencyTriple,
    HandAnalysis,
    HandAnalyzerProtocol,
)
from poker_ev.analysis.driver import BatchResult, analyze_hands
from poker_ev.analysis.pipeline import HandAnalyzer

__all__ = [
    "ActionAnalysis",
    "AnalysisConfig",
    "BatchResult",
    "FrequencyTriple",
    "HandAnalysis",
    "HandAnalyzer",
    "HandAnalyzerProtocol",
    "analyze_hands",
    "load_analysis_config",
]
