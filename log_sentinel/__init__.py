"""
Log Sentinel - Lightweight statistical log anomaly detector

This package provides:
- Unigram + bigram frequency model trained on normal logs
- Add-one smoothed negative log-likelihood line scores
- Robust z-scores from quartiles and MAD of the training corpus
- Batch ranking with HTML report, live file watching, per-line explanations
"""

__version__ = "0.1.0"
