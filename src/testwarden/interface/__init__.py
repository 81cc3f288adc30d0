"""Interface layer: CLI and telemetry."""
