"""
Preference-driven product scoring and ranking.

Responsibilities:
- Turn questionnaire answers into a feature preference vector and benefit points.
- Score each active product on feature, benefit and interconnected signals.
- Blend the signals, rebalance for brand diversity and rank in-stock items first.
- Save the ranked list for the session so a pick can be recorded later.
"""
