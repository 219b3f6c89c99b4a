from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from autoapply.types import FormAnalysis, MatchResult, ProfileSnapshot


@runtime_checkable
class JobDiscovery(Protocol):
    def search(self, profile: ProfileSnapshot) -> Iterable[str]: ...


@runtime_checkable
class MatchScorer(Protocol):
    def score_match(self, job_markup: str, profile: ProfileSnapshot) -> MatchResult: ...


@runtime_checkable
class FormAnalyzer(Protocol):
    def analyze_form(self, screenshot: bytes, markup: str) -> FormAnalysis: ...
