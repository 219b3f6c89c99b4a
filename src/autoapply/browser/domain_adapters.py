from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse


@dataclass(frozen=True, slots=True)
class JobBoard:
    name: str
    host_markers: tuple[str, ...]


KNOWN_BOARDS: tuple[JobBoard, ...] = (
    JobBoard(name="greenhouse", host_markers=("greenhouse.io",)),
    JobBoard(name="lever", host_markers=("lever.co",)),
    JobBoard(name="workable", host_markers=("workable.com",)),
    JobBoard(name="smartrecruiters", host_markers=("smartrecruiters.com",)),
    JobBoard(name="workday", host_markers=("myworkdayjobs.com", "workday.com")),
    JobBoard(name="ashby", host_markers=("ashbyhq.com",)),
    JobBoard(name="linkedin", host_markers=("linkedin.com",)),
    JobBoard(name="indeed", host_markers=("indeed.com",)),
    JobBoard(name="glassdoor", host_markers=("glassdoor.com",)),
)


def detect_job_board(url: str) -> str:
    host = urlparse(url).netloc.lower()
    if host.startswith("www."):
        host = host[4:]

    for board in KNOWN_BOARDS:
        if any(marker in host for marker in board.host_markers):
            return board.name

    return host or "unknown"
