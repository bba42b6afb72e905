import random

import pytest

from twotruths.commands import Command, CommandType
from twotruths.engine import TIMES_UP
from twotruths.state import Phase


async def send(engine, tag, data=None):
    changed = await engine.dispatch(Command(CommandType(tag), data))
    await engine.dispatcher.flush()
    return changed


async def settle(engine):
    await engine.scheduler.drain()
    await engine.dispatcher.flush()


async def add_players(engine, *names):
    for name in names:
        await send(engine, "addPlayer", name)


async def draw(engine):
    assert await send(engine, "pickRandom")
    await settle(engine)


def test_every_command_has_a_handler(engine):
    assert set(engine._handlers) == set(CommandType)


# Joueurs & niveau


@pytest.mark.asyncio
async def test_duplicate_player_is_rejected_without_broadcast(server, engine, make_channel):
    channel = make_channel()
    await server.dispatcher.attach(channel, server.state)
    assert await send(engine, "addPlayer", "Alice")
    assert not await send(engine, "addPlayer", "aLiCe")
    assert not await send(engine, "addPlayer", "   ")
    assert not await send(engine, "addPlayer", 42)
    assert len(channel.sent) == 2
    assert [p["name"] for p in channel.last_state()["players"]] == ["Alice"]


@pytest.mark.asyncio
async def test_remove_current_player_clears_it(engine, state):
    await add_players(engine, "Alice", "Bob")
    state.current_player = "Bob"
    assert await send(engine, "removePlayer", 1)
    assert state.current_player is None
    assert not await send(engine, "removePlayer", 7)
    assert not await send(engine, "removePlayer", "0")


@pytest.mark.asyncio
async def test_adjust_points_floors_at_zero(engine, state):
    await add_players(engine, "Alice")
    for delta in [15, -4, -50, 3]:
        assert await send(engine, "adjustPts", {"idx": 0, "delta": delta})
        assert state.roster.get(0).points >= 0
    assert state.roster.get(0).points == 3
    assert not await send(engine, "adjustPts", {"idx": 3, "delta": 1})
    assert not await send(engine, "adjustPts", 5)


@pytest.mark.asyncio
async def test_set_stage_rejects_unknown_key(engine, state):
    assert await send(engine, "setStage", "hard")
    assert state.stage == "hard"
    assert not await send(engine, "setStage", "legendary")
    assert state.stage == "hard"


# Tirage


@pytest.mark.asyncio
async def test_pick_random_with_nobody_available(engine, state, server, make_channel):
    channel = make_channel()
    await server.dispatcher.attach(channel, state)
    assert not await send(engine, "pickRandom")
    await add_players(engine, "Alice")
    state.roster.get(0).used_in_draw = True
    assert not await send(engine, "pickRandom")
    assert state.draw_animation is None
    assert state.phase is Phase.IDLE
    assert not engine.scheduler.pending("draw")


@pytest.mark.asyncio
async def test_draw_spins_then_commits(engine, state, server, make_channel):
    channel = make_channel()
    await server.dispatcher.attach(channel, state)
    await add_players(engine, "Alice", "Bob")
    assert await send(engine, "pickRandom")

    spinning = channel.last_state()
    assert spinning["gamePhase"] == "spinning"
    assert spinning["slotAnimation"]["spinning"] is True
    assert spinning["slotAnimation"]["names"] == ["Alice", "Bob"]
    winner = spinning["slotAnimation"]["result"]
    assert spinning["currentPlayer"] is None

    await settle(engine)
    final = channel.last_state()
    assert final["slotAnimation"] is None
    assert final["currentPlayer"] == winner
    assert winner in {"Alice", "Bob"}
    assert final["round"] == 1
    assert final["gamePhase"] == "playing"
    assert final["currentSet"] == final["defaultSets"][0]
    assert final["status"] == f"{winner} is on stage! Start the timer when ready."
    assert state.roster.find(winner).used_in_draw


@pytest.mark.asyncio
async def test_draw_only_picks_unused_players(engine, state):
    await add_players(engine, "Alice", "Bob", "Carol")
    state.roster.find("Alice").used_in_draw = True
    state.roster.find("Carol").used_in_draw = True
    await draw(engine)
    assert state.current_player == "Bob"


@pytest.mark.asyncio
async def test_draw_is_uniform_over_available(engine, state):
    engine.rng = random.Random(7)
    engine.settings.draw_delay = 0
    await add_players(engine, "Alice", "Bob", "Carol")
    counts = {"Alice": 0, "Bob": 0, "Carol": 0}
    for _ in range(300):
        for player in state.roster:
            player.used_in_draw = False
        await draw(engine)
        counts[state.current_player] += 1
    assert sum(counts.values()) == 300
    assert all(60 < c < 140 for c in counts.values())


@pytest.mark.asyncio
async def test_draw_clears_round_flags_and_advances_set(engine, state):
    await add_players(engine, "Alice", "Bob")
    state.locked = True
    state.revealed = True
    state.challenger = "Bob"
    state.question_sets.built_in[0].used = True
    await draw(engine)
    assert (state.locked, state.revealed, state.challenger) == (False, False, None)
    assert state.current_set is state.question_sets.built_in[1]


@pytest.mark.asyncio
async def test_auto_advance_keeps_current_set_when_all_used(engine, state):
    await add_players(engine, "Alice")
    for s in state.question_sets.built_in:
        s.used = True
    stale = state.question_sets.built_in[2]
    state.current_set = stale
    await draw(engine)
    assert state.current_set is stale


@pytest.mark.asyncio
async def test_new_draw_supersedes_pending_one(engine, state):
    await add_players(engine, "Alice", "Bob")
    await send(engine, "pickRandom")
    await send(engine, "pickRandom")
    await engine.scheduler.drain()
    assert state.round == 1
    assert sum(p.used_in_draw for p in state.roster) == 1


@pytest.mark.asyncio
async def test_draw_winner_removed_before_commit(engine, state):
    await add_players(engine, "Alice")
    await send(engine, "pickRandom")
    await send(engine, "removePlayer", 0)
    await engine.scheduler.drain()
    assert state.current_player is None
    assert state.round == 0
    assert state.draw_animation is None
    assert state.phase is Phase.IDLE


# Timer


@pytest.mark.asyncio
async def test_timer_counts_down_to_times_up(engine, state, server, make_channel):
    channel = make_channel()
    await server.dispatcher.attach(channel, state)
    await add_players(engine, "Alice", "Bob")
    await draw(engine)
    before = len(channel.sent)

    assert await send(engine, "startTimer", 30)
    started = channel.last_state()
    assert (started["timerVal"], started["timerRunning"], started["timerDuration"]) == (30, True, 30)
    assert started["status"] == f"{state.current_player} is thinking..."

    await settle(engine)
    ticks = [m["data"]["timerVal"] for m in channel.sent[before + 1:]]
    assert ticks == list(range(29, -1, -1))
    assert state.timer_remaining == 0
    assert state.timer_running is False
    assert state.status == TIMES_UP


@pytest.mark.asyncio
async def test_start_timer_defaults_to_sixty(engine, state):
    await send(engine, "startTimer", None)
    assert state.timer_duration == 60
    await send(engine, "startTimer", 0)
    assert state.timer_remaining == 60
    await send(engine, "stopTimer")


@pytest.mark.asyncio
async def test_restart_replaces_running_countdown(engine, state):
    await send(engine, "startTimer", 1000)
    await send(engine, "startTimer", 3)
    await engine.scheduler.drain()
    assert state.timer_duration == 3
    assert state.timer_remaining == 0


@pytest.mark.asyncio
async def test_stop_and_reset_timer(engine, state):
    await send(engine, "startTimer", 1000)
    await send(engine, "stopTimer")
    assert not engine.scheduler.pending("countdown")
    assert state.timer_running is False
    remaining = state.timer_remaining
    await engine.scheduler.drain()
    assert state.timer_remaining == remaining

    await send(engine, "resetTimer", 45)
    assert state.timer_remaining == 45
    await send(engine, "resetTimer")
    assert state.timer_remaining == 1000


@pytest.mark.asyncio
async def test_lock_answer_stops_timer(engine, state):
    await send(engine, "startTimer", 1000)
    assert await send(engine, "lockAnswer")
    assert not engine.scheduler.pending("countdown")
    assert state.timer_running is False
    assert state.locked is True
    assert state.phase is Phase.LOCKED
    assert state.status == "Player locked answer. Challenge or Reveal?"


# Manche


@pytest.mark.asyncio
async def test_reveal_marks_current_set_used(engine, state):
    assert await send(engine, "revealAnswer")
    assert state.revealed and state.phase is Phase.REVEALED
    assert not any(s.used for s in state.question_sets.built_in)

    await send(engine, "selectQset", 2)
    await send(engine, "revealAnswer")
    await send(engine, "revealAnswer")
    assert [s.used for s in state.question_sets.built_in] == [False, False, True, False]


@pytest.mark.asyncio
async def test_full_round_award(engine, state):
    await add_players(engine, "Alice", "Bob")
    await draw(engine)
    winner = state.roster.find(state.current_player)
    await send(engine, "lockAnswer")
    assert await send(engine, "awardParticipant")
    assert winner.points == 10
    assert state.phase is Phase.DONE
    assert state.score_flash == {"text": "+10", "positive": True}
    assert state.status == f"🎉 {winner.name} +10 pts!"
    await engine.scheduler.drain()
    assert state.score_flash is None


@pytest.mark.asyncio
async def test_award_uses_stage_points(engine, state):
    await add_players(engine, "Alice")
    await send(engine, "setStage", "extreme")
    state.current_player = "Alice"
    await send(engine, "awardParticipant")
    assert state.roster.find("Alice").points == 40
    await engine.scheduler.drain()


@pytest.mark.asyncio
async def test_participant_wrong_and_next_round(engine, state):
    await add_players(engine, "Alice")
    await draw(engine)
    await send(engine, "participantWrong")
    assert state.phase is Phase.DONE
    assert state.roster.find("Alice").points == 0
    state.challenger = "Alice"
    await send(engine, "nextRound")
    assert state.current_set is None
    assert (state.revealed, state.locked, state.challenger) == (False, False, None)
    assert state.phase is Phase.IDLE


# Défis


@pytest.mark.asyncio
async def test_third_challenge_in_window_is_blocked(engine, state, server, make_channel):
    await add_players(engine, "Alice", "Bob")
    await draw(engine)
    assert await send(engine, "selectChallenger", "Bob")
    assert state.challenge_animation is True
    assert state.phase is Phase.LOCKED
    assert await send(engine, "selectChallenger", "Bob")
    bob = state.roster.find("Bob")
    assert bob.challenge_count == 2
    assert bob.last_challenge_round == 1

    channel = make_channel()
    await server.dispatcher.attach(channel, state)
    assert not await send(engine, "selectChallenger", "Bob")
    assert not await send(engine, "selectChallenger", "Nobody")
    assert len(channel.sent) == 1
    assert bob.challenge_count == 2

    await engine.scheduler.drain()
    assert state.challenge_animation is False


@pytest.mark.asyncio
async def test_challenge_count_resets_two_rounds_later(engine, state):
    await add_players(engine, "Alice", "Bob", "Carol", "Dave")
    await draw(engine)
    await send(engine, "selectChallenger", "Dave")
    await send(engine, "selectChallenger", "Dave")
    dave = state.roster.find("Dave")
    # un seul tour écoulé: toujours bloqué
    state.roster.find("Dave").used_in_draw = True
    await draw(engine)
    assert state.round == 2
    assert dave.challenge_count == 2
    assert not await send(engine, "selectChallenger", "Dave")
    await draw(engine)
    assert state.round == 3
    assert dave.challenge_count == 0
    assert await send(engine, "selectChallenger", "Dave")


@pytest.mark.asyncio
async def test_challenger_correct(engine, state):
    await add_players(engine, "Alice", "Bob")
    await draw(engine)
    current = state.current_set
    await send(engine, "setStage", "medium")
    await send(engine, "selectChallenger", "Bob")
    assert await send(engine, "challengerCorrect")
    assert state.roster.find("Bob").points == 10
    assert state.score_flash == {"text": "+10", "positive": True}
    assert state.revealed and state.phase is Phase.REVEALED
    assert current.used is True
    await engine.scheduler.drain()


@pytest.mark.asyncio
async def test_challenger_wrong_never_goes_negative(engine, state):
    await add_players(engine, "Alice", "Bob")
    await draw(engine)
    await send(engine, "adjustPts", {"idx": 1, "delta": 3})
    await send(engine, "selectChallenger", "Bob")
    assert await send(engine, "challengerWrong")
    assert state.roster.find("Bob").points == 0
    assert state.score_flash == {"text": "-5", "positive": False}
    assert state.current_set.used is True
    assert state.status == "⚔️ Challenger wrong! -5 pts. Revealing answer..."
    await engine.scheduler.drain()


@pytest.mark.asyncio
async def test_clear_challenger(engine, state):
    await add_players(engine, "Alice")
    await send(engine, "selectChallenger", "Alice")
    await send(engine, "clearChallenger")
    assert state.challenger is None
    await engine.scheduler.drain()


# Remises à zéro


@pytest.mark.asyncio
async def test_reset_all_scores(engine, state):
    await add_players(engine, "Alice", "Bob")
    await draw(engine)
    await send(engine, "adjustPts", {"idx": 0, "delta": 20})
    await send(engine, "resetAllScores")
    assert all(p.points == 0 and not p.used_in_draw and p.challenge_count == 0 for p in state.roster)
    assert state.round == 0
    assert state.current_player is None
    assert state.phase is Phase.IDLE
    assert state.status == "Scores reset. Ready to start!"


@pytest.mark.asyncio
async def test_clear_all_players(engine, state):
    await add_players(engine, "Alice", "Bob")
    await draw(engine)
    await send(engine, "clearAllPlayers")
    assert len(state.roster) == 0
    assert state.current_player is None
    assert state.phase is Phase.IDLE


@pytest.mark.asyncio
async def test_question_sets_add_select_and_reset(engine, state):
    assert await send(engine, "addQset", {"a": "x", "b": "y", "c": "z", "lie": "a", "explain": "e"})
    assert not await send(engine, "addQset", "nope")
    assert await send(engine, "selectQset", 4)
    assert state.current_set.a == "x"
    assert not await send(engine, "selectQset", 9)
    await send(engine, "revealAnswer")
    state.question_sets.built_in[0].used = True

    assert await send(engine, "resetQsets")
    assert state.question_sets.custom == []
    assert not any(s.used for s in state.question_sets.built_in)
    assert state.current_set is None


@pytest.mark.asyncio
async def test_toggle_leaderboard(engine, state):
    await send(engine, "toggleLeaderboard", True)
    assert state.show_leaderboard is True
    await send(engine, "toggleLeaderboard", None)
    assert state.show_leaderboard is False


@pytest.mark.asyncio
async def test_challenge_outcomes_without_current_set(engine, state):
    await add_players(engine, "Alice", "Bob")
    state.current_player = "Alice"
    await send(engine, "selectChallenger", "Bob")
    assert state.current_set is None
    assert await send(engine, "challengerCorrect")
    assert await send(engine, "challengerWrong")
    assert not any(s.used for s in state.question_sets.list_available())
    assert state.revealed and state.phase is Phase.REVEALED
    await settle(engine)


@pytest.mark.asyncio
@pytest.mark.parametrize("outcome", ["challengerCorrect", "challengerWrong"])
async def test_challenge_outcomes_mark_set_used_once(engine, state, outcome):
    await add_players(engine, "Alice", "Bob")
    await send(engine, "selectQset", 1)
    await send(engine, "selectChallenger", "Bob")
    await send(engine, outcome)
    await send(engine, outcome)
    assert [s.used for s in state.question_sets.built_in] == [False, True, False, False]
    assert state.current_set is state.question_sets.built_in[1]
    await settle(engine)


@pytest.mark.asyncio
async def test_unresolvable_stage_scores_as_default(engine, state):
    await add_players(engine, "Alice")
    state.current_player = "Alice"
    state.stage = "legendary"
    assert engine.stage.base_points == 10
    assert await send(engine, "awardParticipant")
    assert state.roster.find("Alice").points == 10
    await settle(engine)
