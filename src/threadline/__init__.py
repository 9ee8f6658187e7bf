"""Threadline: direct messaging for the social network."""
