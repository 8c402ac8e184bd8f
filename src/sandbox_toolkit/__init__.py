"""Sandbox Toolkit command line package."""
