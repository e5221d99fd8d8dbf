"""
Material ledger: aggregates demand/donation records into per-material totals
and per-zone household counts.

Modules
-------
aggregates : summarize_materials() + critical_shortages() + zone_aggregates()
             + summarize_cases() + build_ledger() - pure functions, no DB or I/O.
donations  : tally_donations() + recent_donations() + with_donation_totals().
"""
