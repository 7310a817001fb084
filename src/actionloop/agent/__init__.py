"""Agent loop module for actionloop.

Contains the state machine that alternates between model inference and
action execution, and the session it threads through a run.

Public API:
    AgentLoop -- Central orchestrator
    Session -- Append-only turn log of one run
    run_automation -- One-shot helper
"""

from actionloop.agent.loop import AgentLoop, run_automation
from actionloop.agent.session import Session

__all__ = ["AgentLoop", "Session", "run_automation"]
