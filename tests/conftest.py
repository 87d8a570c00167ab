"""Pytest configuration and fixtures."""

import asyncio
import hashlib
import os
import pathlib
from typing import Dict, List, Optional

import pytest
import vcr

from vocab_conjugator.rate_limiter import SlidingWindowRateLimiter

# Calculate hash of prompts.py for cassette invalidation
PROMPTS_HASH = hashlib.sha256(
    (pathlib.Path(__file__).parent.parent / "vocab_conjugator" / "prompts.py").read_bytes()
).hexdigest()[:8]


def cassette(name: str) -> str:
    """Generate cassette filename with prompt hash."""
    return f"{name}_{PROMPTS_HASH}.yaml"


@pytest.fixture
def my_vcr():
    """VCR fixture for recording/replaying HTTP interactions."""
    return vcr.VCR(
        cassette_library_dir=str(pathlib.Path(__file__).parent / "fixtures"),
        filter_headers=[("authorization", "DUMMY")],
        record_mode="once",
    )


def live_guard():
    """Check if live testing is enabled."""
    if os.getenv("VOCAB_CONJUGATOR_LIVE") != "1":
        pytest.skip("Live LLM disabled (set VOCAB_CONJUGATOR_LIVE=1)")


CONJUGATION_READ = '''"я чита́ю новую книгу","I read a new book"
"ты чита́ешь интересное письмо","you read an interesting letter"'''


class StubGenerator:
    """Deterministic generator: canned replies keyed by a word found in the prompt."""

    def __init__(self, replies: Optional[Dict[str, str]] = None, default: str = CONJUGATION_READ,
                 failures: Optional[Dict[str, Exception]] = None, delays: Optional[Dict[str, float]] = None):
        self.replies = replies or {}
        self.default = default
        self.failures = failures or {}
        self.delays = delays or {}
        self.prompts: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def _key(self, prompt: str) -> Optional[str]:
        for line in prompt.splitlines():
            if line.startswith("INFINITIVE FORM: "):
                return line[len("INFINITIVE FORM: "):].split(" (translation:")[0]
        return None

    async def generate(self, prompt: str, admit=None) -> str:
        if admit is not None:
            await admit()
        self.prompts.append(prompt)
        key = self._key(prompt)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(key, 0))
            if key in self.failures:
                raise self.failures[key]
            return self.replies.get(key, self.default)
        finally:
            self.in_flight -= 1

    @property
    def verbs(self) -> List[Optional[str]]:
        return [self._key(prompt) for prompt in self.prompts]


class FakeClock:
    """Manually advanced monotonic clock; ``sleep`` moves time forward."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


@pytest.fixture
def stub_generator():
    return StubGenerator()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def unlimited():
    """A rate limiter that never makes a test wait."""
    return SlidingWindowRateLimiter(max_requests=1000, window=1.0)


@pytest.fixture
def sample_table():
    """A small vocabulary table with one pass-through row and one verb."""
    return '"гро́мкий","loud"\n"чита́ть","to read"'
