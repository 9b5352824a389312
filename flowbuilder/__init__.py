# -*- coding: utf-8 -*-
"""
A node-graph flow builder: block registry, canvas model, interaction state
machine, undo history, renderer and persistence, with a PyQt5 front end.
"""

from flowbuilder.conf import __version__
