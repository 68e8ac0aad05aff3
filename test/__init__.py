"""Tests for the seqpublish package."""
