"""
Terminal reporting for the recovery-engine CLI.

Modules
-------
formatters : format_dashboard() + format_review_queue() + format_case_detail()
             + format_donation_feed() - ASCII text for typer.echo().
"""
