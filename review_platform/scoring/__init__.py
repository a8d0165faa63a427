"""
scoring/: Evaluation Scoring

Modules:
    utils.py              - Decimal utilities
    rating_sheet.py       - Per-session rating state for one application
    evaluation_scorer.py  - Final score calculation (rating quality minus AI penalty)
"""
