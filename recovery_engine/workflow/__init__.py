"""
Review workflow: the binary human approval gate for households.

Modules
-------
approval : plan_approval() / plan_rejection() pure transition planning +
           ApprovalWorkflow over a compare-and-set HouseholdStore.
"""
