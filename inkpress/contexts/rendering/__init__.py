"""
Rendering Context

Responsibilities:
- Runs the engine once per job (one-shot) or as a persistent control process
- Ships input documents and job resources to the engine
- Collects rendered output and the engine's diagnostics
- Owns the engine subprocess and both pipe directions for its lifetime

Owns: Engine processes, session lifecycle, per-job resource indexing
Never: Mutates configuration or interprets rendered output
"""

from inkpress.contexts.rendering.control import ControlSession, SessionState
from inkpress.contexts.rendering.job import Job, JobBuilder, JobDescriptor, job_resource_url
from inkpress.contexts.rendering.one_shot import OneShotConverter
from inkpress.contexts.rendering.process import ProcessHandle, spawn_process

__all__ = [
    # Session strategies
    "OneShotConverter",
    "ControlSession",
    "SessionState",
    # Per-job state
    "Job",
    "JobBuilder",
    "JobDescriptor",
    "job_resource_url",
    # Process seam
    "ProcessHandle",
    "spawn_process",
]
