"""Presentation layer: the ``chatstream`` command-line interface."""
