"""engine/__init__.py"""
from .anomaly import AnomalyAnalyzer
from .scorer import ThreatScorer

__all__ = ["AnomalyAnalyzer", "ThreatScorer"]
