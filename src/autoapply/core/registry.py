from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

from autoapply.core.agent import UserAgent
from autoapply.core.scheduler import RecurringTask
from autoapply.types import RunSummary

logger = logging.getLogger(__name__)

MAX_USER_ID_LENGTH = 64


@dataclass(slots=True)
class AgentHandle:
    agent: UserAgent
    task: RecurringTask

    def cancel(self) -> None:
        self.task.cancel()
        self.agent.cancel()


def validate_user_id(user_id: object) -> str:
    if not isinstance(user_id, str) or not user_id.strip():
        raise ValueError("user_id must be a non-empty string")
    if len(user_id) > MAX_USER_ID_LENGTH or user_id != user_id.strip():
        raise ValueError(f"invalid user_id {user_id!r}")
    return user_id


class AgentRegistry:
    """Process-wide table of running agents, at most one schedule per user."""

    def __init__(self, agent_factory: Callable[[str], UserAgent], *, interval_sec: float):
        self.agent_factory = agent_factory
        self.interval_sec = interval_sec
        self._handles: dict[str, AgentHandle] = {}
        self._run_locks: dict[str, threading.Lock] = {}
        self._lock = threading.RLock()

    def start(self, user_id: str, *, run_now: bool = True) -> RunSummary | None:
        """Replace any existing schedule for ``user_id`` and run the new agent immediately.

        Every agent of one user shares a single run lock, so the immediate run
        waits for a replaced agent to finish its in-flight candidate.
        """
        user_id = validate_user_id(user_id)
        agent = self.agent_factory(user_id)
        task = RecurringTask(f"agent-{user_id}", self.interval_sec, agent.run_once)

        with self._lock:
            agent.run_lock = self._run_locks.setdefault(user_id, threading.Lock())
            previous = self._handles.pop(user_id, None)
            if previous is not None:
                previous.cancel()
                logger.info("Replaced running agent for user %s", user_id)
            task.start()
            self._handles[user_id] = AgentHandle(agent=agent, task=task)

        logger.info("Started job agent for user %s", user_id)
        if not run_now:
            return None
        return agent.run_once(wait=True)

    def stop(self, user_id: str) -> bool:
        user_id = validate_user_id(user_id)
        with self._lock:
            handle = self._handles.pop(user_id, None)
        if handle is None:
            return False

        handle.cancel()
        logger.info("Stopped job agent for user %s", user_id)
        return True

    def is_running(self, user_id: str) -> bool:
        with self._lock:
            handle = self._handles.get(user_id)
            return handle is not None and handle.task.is_active

    def get(self, user_id: str) -> UserAgent | None:
        with self._lock:
            handle = self._handles.get(user_id)
            return handle.agent if handle else None

    def running_users(self) -> list[str]:
        with self._lock:
            return sorted(self._handles)

    def shutdown(self, timeout: float | None = 5.0) -> None:
        with self._lock:
            handles = list(self._handles.values())
            self._handles.clear()
        for handle in handles:
            handle.cancel()
        for handle in handles:
            handle.task.join(timeout)
        logger.info("Agent registry shut down (%d agents stopped)", len(handles))
