"""Batch driver: analyze many hands, serially or across worker processes.

Hands are independent, so a batch can be spread over a process pool.
Inputs may be parsed Hand objects or raw dicts; a dict that fails to
parse becomes a HandAnalysis carrying the parse error instead of
stopping the batch. A cancel event is checked between hands.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Sequence
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import Any

from poker_ev.analysis.config import AnalysisConfig
from poker_ev.analysis.data_structures import HandAnalysis
from poker_ev.analysis.pipeline import HandAnalyzer
from poker_ev.core.errors import AnalysisError, ErrorKind
from poker_ev.core.hand_record import Hand
from poker_ev.utils.card import InvalidCardError

logger = logging.getLogger("poker_ev.analysis")


@dataclass(frozen=True)
class BatchResult:
    """Analyses of a batch, in input order.

    Attributes:
        analyses: One HandAnalysis per processed input.
        cancelled: True if the cancel event stopped the batch early.
    """

    analyses: tuple[HandAnalysis, ...]
    cancelled: bool = False

    @property
    def error_count(self) -> int:
        return sum(
            len(a.errors) + sum(len(r.errors) for r in a.actions)
            for a in self.analyses
        )

    def as_dict(self) -> dict:
        return {
            "hands": [a.as_dict() for a in self.analyses],
            "cancelled": self.cancelled,
        }


def parse_hand(data: dict[str, Any]) -> Hand | AnalysisError:
    """Parse one raw hand record, returning the error instead of raising."""
    try:
        return Hand.from_dict(data)
    except InvalidCardError as e:
        return AnalysisError(ErrorKind.INVALID_CARD, str(e))
    except (ValueError, TypeError, AttributeError) as e:
        return AnalysisError(ErrorKind.INPUT_SHAPE_MISMATCH, str(e))


def _analyze_one(
    item: Hand | dict[str, Any], hero_id: str, config: AnalysisConfig,
) -> HandAnalysis:
    """Worker function: parse if needed, then analyze one hand.

    Top-level so that ProcessPoolExecutor can pickle it.
    """
    if isinstance(item, Hand):
        hand = item
    else:
        parsed = parse_hand(item)
        if isinstance(parsed, AnalysisError):
            hand_id = str(item.get("hand_id", "?")) if isinstance(item, dict) else "?"
            logger.warning("Hand %s rejected: %s", hand_id, parsed)
            return HandAnalysis(hand_id, hero_id, errors=(parsed,))
        hand = parsed
    return HandAnalyzer(config).analyze_hand(hand, hero_id)


def analyze_hands(
    hands: Sequence[Hand | dict[str, Any]],
    hero_id: str,
    config: AnalysisConfig | None = None,
    cancel_event: threading.Event | None = None,
    max_workers: int | None = None,
) -> BatchResult:
    """Analyze a batch of hands for one hero.

    Args:
        hands: Parsed hands or raw hand dicts.
        hero_id: Player whose decisions are analyzed.
        config: Analysis configuration (defaults when omitted).
        cancel_event: Set it to stop after the hand in progress.
        max_workers: Worker processes; None or 1 runs serially.

    Returns:
        BatchResult with the analyses finished before any cancellation.
    """
    config = config or AnalysisConfig()
    t_start = time.perf_counter()

    if max_workers is not None and max_workers > 1 and len(hands) > 1:
        result = _analyze_parallel(hands, hero_id, config, cancel_event, max_workers)
    else:
        result = _analyze_serial(hands, hero_id, config, cancel_event)

    elapsed_ms = (time.perf_counter() - t_start) * 1000
    logger.info(
        "Analyzed %d/%d hands for %s (%d errors%s, %.1fms)",
        len(result.analyses), len(hands), hero_id, result.error_count,
        ", cancelled" if result.cancelled else "", elapsed_ms,
    )
    return result


def _analyze_serial(
    hands: Sequence[Hand | dict[str, Any]],
    hero_id: str,
    config: AnalysisConfig,
    cancel_event: threading.Event | None,
) -> BatchResult:
    analyzer = HandAnalyzer(config)
    analyses: list[HandAnalysis] = []
    for item in hands:
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Batch cancelled after %d hands", len(analyses))
            return BatchResult(tuple(analyses), cancelled=True)
        if isinstance(item, Hand):
            analyses.append(analyzer.analyze_hand(item, hero_id))
        else:
            analyses.append(_analyze_one(item, hero_id, config))
    return BatchResult(tuple(analyses))


def _analyze_parallel(
    hands: Sequence[Hand | dict[str, Any]],
    hero_id: str,
    config: AnalysisConfig,
    cancel_event: threading.Event | None,
    max_workers: int,
) -> BatchResult:
    analyses: list[HandAnalysis] = []
    with ProcessPoolExecutor(max_workers=max_workers) as executor:
        futures = [
            executor.submit(_analyze_one, item, hero_id, config) for item in hands
        ]
        for i, future in enumerate(futures):
            if cancel_event is not None and cancel_event.is_set():
                for pending in futures[i:]:
                    pending.cancel()
                logger.info("Batch cancelled after %d hands", len(analyses))
                return BatchResult(tuple(analyses), cancelled=True)
            analyses.append(future.result())
    return BatchResult(tuple(analyses))
