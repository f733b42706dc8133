"""Application services: evaluation orchestration, result assembly, consultation."""
