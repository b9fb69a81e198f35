# -*- coding: utf-8 -*-
"""A grid-based editor for math-expression block diagrams."""

from mathdiagrams.conf import __version__
