"""
Tests for NarrationPlayer sequencing.

Verifies:
- Segment, prompt, awaiting-command ordering
- No overlapping utterances
- advance / repeat / restart / stop semantics
- Stale utterance ends are ignored
"""
import pytest

from narration.player import NarrationPlayer, PlayerState
from narration.rate import RateController
from narration.voices import Voice, VoiceCatalog


SEGMENTS = ["Intro", "Ingredients", "Steps"]
PROMPT = "Say continue"


@pytest.fixture
def awaiting():
    return []


@pytest.fixture
def player(synth, awaiting):
    p = NarrationPlayer(
        synth,
        RateController(),
        VoiceCatalog(synth.voices()),
        PROMPT,
        on_awaiting_command=lambda: awaiting.append(True),
    )
    p.load(SEGMENTS)
    return p


def finish(player, synth):
    utterance = synth.complete()
    player.on_utterance_ended(utterance.utterance_id)
    return utterance


def finish_turn(player, synth):
    """Let the segment and its prompt play out."""
    finish(player, synth)
    finish(player, synth)


def test_initial_state(player):
    assert player.state == PlayerState.IDLE
    assert player.cursor == 0
    assert player.segments == tuple(SEGMENTS)


def test_segment_then_prompt_then_awaiting(player, synth, awaiting):
    assert player.play(0) is True
    assert player.state == PlayerState.SPEAKING_SEGMENT
    assert synth.active.text == "Intro"

    finish(player, synth)
    assert player.state == PlayerState.SPEAKING_PROMPT
    assert synth.active.text == PROMPT
    assert synth.active.kind == "prompt"
    assert awaiting == []

    finish(player, synth)
    assert player.state == PlayerState.AWAITING_COMMAND
    assert synth.active is None
    assert awaiting == [True]


def test_segments_spoken_in_order_exactly_once(player, synth):
    player.play(0)
    finish_turn(player, synth)
    player.advance()
    finish_turn(player, synth)
    player.advance()
    finish_turn(player, synth)

    assert synth.segment_texts == ["Intro", "Ingredients", "Steps"]
    assert synth.overlaps == 0
    # Every start comes after the previous end
    for previous, current in zip(synth.log, synth.log[1:]):
        if current.startswith("start:"):
            assert previous.startswith("end:")


def test_advance_past_last_segment_goes_idle(player, synth):
    player.play(2)
    finish_turn(player, synth)

    assert player.advance() is False
    assert player.state == PlayerState.IDLE
    assert player.cursor == 3
    assert synth.active is None

    # Already past the end: still a no-op
    assert player.advance() is False
    assert player.cursor == 3
    assert player.state == PlayerState.IDLE


def test_repeat_replays_current_segment(player, synth):
    player.play(0)
    finish_turn(player, synth)
    player.advance()
    finish_turn(player, synth)

    assert player.repeat() is True
    assert player.cursor == 1
    assert synth.active.text == "Ingredients"
    assert synth.segment_texts == ["Intro", "Ingredients", "Ingredients"]


def test_restart_after_last_segment(player, synth):
    player.play(0)
    for _ in range(2):
        finish_turn(player, synth)
        player.advance()
    finish_turn(player, synth)
    assert player.cursor == 2
    assert player.state == PlayerState.AWAITING_COMMAND

    assert player.restart() is True
    assert player.cursor == 0
    assert player.state == PlayerState.SPEAKING_SEGMENT
    assert synth.active.text == "Intro"


def test_restart_after_finishing(player, synth):
    player.play(2)
    finish_turn(player, synth)
    player.advance()
    assert player.state == PlayerState.IDLE

    player.restart()
    assert player.cursor == 0
    assert synth.active.text == "Intro"


def test_stop_cancels_and_is_idempotent(player, synth):
    player.play(0)
    player.stop()
    assert player.state == PlayerState.IDLE
    assert synth.cancel_count >= 1

    player.stop()
    assert player.state == PlayerState.IDLE


def test_stop_when_nothing_loaded(synth):
    p = NarrationPlayer(synth, RateController(), VoiceCatalog(), PROMPT)
    p.stop()
    p.stop()
    assert p.state == PlayerState.IDLE


def test_stale_end_after_stop_is_ignored(player, synth, awaiting):
    player.play(0)
    stale_id = synth.active.utterance_id
    player.stop()

    player.on_utterance_ended(stale_id)
    assert player.state == PlayerState.IDLE
    assert [u.kind for u in synth.spoken] == ["segment"]
    assert awaiting == []


def test_duplicate_end_is_ignored(player, synth):
    player.play(0)
    utterance = finish(player, synth)
    prompt_count = len(synth.spoken)

    player.on_utterance_ended(utterance.utterance_id)
    assert len(synth.spoken) == prompt_count
    assert player.state == PlayerState.SPEAKING_PROMPT


def test_play_out_of_range_stays_idle(player, synth):
    assert player.play(5) is False
    assert player.state == PlayerState.IDLE
    assert player.cursor == 3
    assert synth.spoken == []


def test_play_with_no_segments(synth):
    p = NarrationPlayer(synth, RateController(), VoiceCatalog(), PROMPT)
    assert p.play(0) is False
    assert p.state == PlayerState.IDLE


def test_rate_and_voice_read_at_dispatch(synth):
    rate = RateController()
    voices = VoiceCatalog([Voice("John", "en-US"), Voice("Emma (female)", "en-GB")])
    p = NarrationPlayer(synth, rate, voices, PROMPT)
    p.load(SEGMENTS)

    p.play(0)
    assert synth.active.rate == 1.0
    assert synth.active.voice is None

    rate.increase()
    voices.select("en-GB", "female")
    utterance = synth.complete()
    p.on_utterance_ended(utterance.utterance_id)

    # The prompt was dispatched after the change
    assert synth.active.rate == 1.1
    assert synth.active.voice.name == "Emma (female)"
    # The already dispatched segment kept its values
    assert synth.spoken[0].rate == 1.0


def test_state_change_callback(synth):
    changes = []
    p = NarrationPlayer(
        synth, RateController(), VoiceCatalog(), PROMPT,
        on_state_changed=lambda old, new: changes.append((old, new)),
    )
    p.load(SEGMENTS)
    p.play(0)
    p.stop()
    assert changes == [
        (PlayerState.IDLE, PlayerState.SPEAKING_SEGMENT),
        (PlayerState.SPEAKING_SEGMENT, PlayerState.IDLE),
    ]


def test_utterance_ids_increase(player, synth):
    player.play(0)
    finish(player, synth)
    ids = [u.utterance_id for u in synth.spoken]
    assert ids == sorted(ids)
    assert len(set(ids)) == len(ids)
