"""Revision replay core: slugs, tree state, commits and the engine."""
