"""Patients API: a minimal REST server for Patient records."""
