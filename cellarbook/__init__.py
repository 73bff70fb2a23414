"""Cellarbook - personal wine and beverage inventory tracker."""

__version__ = "0.1.0"
