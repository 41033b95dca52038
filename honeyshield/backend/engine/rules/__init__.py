"""engine/rules — batch anomaly detectors, discovered by AnomalyAnalyzer."""
