"""
Services package exports.
"""
from .game_status_service import GameStatusResolver
from .standings_service import StandingsAggregator, StandingsEngine
from .tiebreak_service import HeadToHead, TieBreakRanker

__all__ = ["GameStatusResolver", "StandingsAggregator", "StandingsEngine", "HeadToHead", "TieBreakRanker"]
