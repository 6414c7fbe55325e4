"""Prompt templates for the vision stages and the super-prompt synthesis."""
