"""Foundational components: constants, context, callback helpers."""
