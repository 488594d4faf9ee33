"""
Question Randomizer (qrand) Package

Sequences survey questions in a constrained random order.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - How a question is rendered
    - Which survey engine hosts it
    - Buttons, DOM nodes or other widgets

Questions are grouped into units, units are shuffled so that no group
repeats more than ``max_run`` times in a row, and a sequencer reveals
them one at a time.

All host interaction happens through ``qrand.host.HostAdapter``.
"""

__version__ = "0.1.0"
