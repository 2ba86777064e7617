"""Mutation operations over funnel graphs."""
