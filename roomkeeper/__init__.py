"""roomkeeper - label-backed room containers.

Room configuration lives entirely in container labels. This package provides
the label codec and the lifecycle worker (deadline reaper + session status
relay) that operate on those labels.
"""

__version__ = "0.1.0"
