"""LangGraph definition of a single control cycle."""
