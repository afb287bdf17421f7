"""Evaluation module."""

from .evaluate import show_games

__all__ = ['show_games']
