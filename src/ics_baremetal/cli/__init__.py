"""Command-line interface for ics-baremetal."""
