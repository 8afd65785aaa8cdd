"""Job planning, orchestration and metrics for the local engine."""
