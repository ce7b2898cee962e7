"""Core generation pipeline: taxonomy, selection, prompts, validation."""
