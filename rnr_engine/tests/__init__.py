"""Tests for the rules engine."""
