"""Shots identity service."""
