"""Test suite for the Answer Paper Grader."""
