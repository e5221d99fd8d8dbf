"""
Case classification: priority tiers and review-state derivation.

Modules
-------
rules      : PriorityRule / SizeBucket ordered threshold tables + defaults.
classifier : classify_priority() + review_state() predicates + review_queue().
             Pure functions, no DB or I/O.
"""
