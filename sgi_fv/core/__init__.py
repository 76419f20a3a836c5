"""Core settings, logging, security and request dependencies."""
