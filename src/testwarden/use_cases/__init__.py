"""Use cases: orchestration of model building, rule evaluation and reporting."""
