"""actionloop -- Model-directed action loop.

This package implements a generic "model proposes, system executes,
model observes" loop: a language model emits structured action requests,
the loop executes them against a registry of actions and feeds the
results back, until the model answers without requesting any action.
"""

__version__ = "0.1.0"
