"""Domain layer: test model, findings, rules and configuration. No I/O."""
