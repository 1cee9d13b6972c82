"""Deployments: software image metadata storage."""
