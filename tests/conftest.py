"""Shared fixtures for narration tests."""

import pytest

from fakes import FakeEngine, FakeMicrophone, FakeSynthesizer
from narration.config import NarrationConfig
from narration.controller import NarrationController
from narration.signals import SignalQueue
from narration.voices import Voice
from observability.event_store import event_store


@pytest.fixture(autouse=True)
def clear_events():
    yield
    event_store.clear()


@pytest.fixture
def signals():
    return SignalQueue()


@pytest.fixture
def synth(signals):
    return FakeSynthesizer(signals, voices=[
        Voice("John", "en-US"),
        Voice("Emma (female)", "en-GB"),
    ])


@pytest.fixture
def engine(signals):
    return FakeEngine(signals)


@pytest.fixture
def microphone():
    return FakeMicrophone()


@pytest.fixture
def controller(synth, engine, microphone, signals):
    return NarrationController(synth, engine, microphone, signals=signals, config=NarrationConfig())
