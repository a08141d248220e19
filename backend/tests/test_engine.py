from quizlive.services.game import engine, ledger, lobby

MC = {
    'text': 'Which planet is closest to the sun?',
    'type': 'multiple_choice',
    'answers': ['Venus', 'Earth', 'Mercury', 'Mars'],
    'correct_index': 2,
}
TF = {'text': 'The sky is green.', 'type': 'true_false', 'correct_index': 1}


def test_start_with_empty_roster_is_a_silent_noop(game_factory):
    gs, _ = game_factory(nicknames=())
    assert engine.start_session(gs, now=1000.0) is False
    assert gs.status == 'lobby'
    assert gs.question_start_time is None


def test_start_opens_first_question(game_factory):
    gs, _ = game_factory()
    assert engine.start_session(gs, now=1000.0) is True
    assert gs.status == 'playing'
    assert gs.current_question_index == 0
    assert gs.question_start_time == 1000.0
    assert gs.answer_revealed is False
    # second start changes nothing
    assert engine.start_session(gs, now=2000.0) is False
    assert gs.question_start_time == 1000.0


def test_reveal_is_idempotent(game_factory):
    gs, _ = game_factory()
    engine.start_session(gs, now=1000.0)
    assert engine.reveal_answer(gs, now=1005.0) is True
    assert gs.answer_revealed is True
    assert gs.revealed_at == 1005.0
    assert engine.reveal_answer(gs, now=1009.0) is False
    assert gs.revealed_at == 1005.0


def test_reveal_outside_playing_is_noop(game_factory):
    gs, _ = game_factory()
    assert engine.reveal_answer(gs) is False
    assert gs.answer_revealed is False


def test_advance_requires_reveal(game_factory):
    gs, _ = game_factory(questions=[MC, TF])
    engine.start_session(gs, now=1000.0)
    assert engine.advance_question(gs, now=1001.0) is False
    assert gs.current_question_index == 0


def test_advance_moves_to_next_question_and_resets_phase(game_factory):
    gs, _ = game_factory(questions=[MC, TF])
    engine.start_session(gs, now=1000.0)
    engine.reveal_answer(gs, now=1010.0)
    assert engine.advance_question(gs, now=1015.0) is True
    assert gs.status == 'playing'
    assert gs.current_question_index == 1
    assert gs.question_start_time == 1015.0
    assert gs.answer_revealed is False
    assert gs.revealed_at is None


def test_advance_after_last_question_finishes(game_factory):
    gs, _ = game_factory()
    engine.start_session(gs, now=1000.0)
    engine.reveal_answer(gs, now=1010.0)
    assert engine.advance_question(gs, now=1015.0) is True
    assert gs.status == 'finished'
    assert gs.current_question_index == 0
    assert gs.finished_at == 1015.0


def test_competing_advances_increment_exactly_once(game_factory):
    gs, _ = game_factory(questions=[MC, TF, MC])
    engine.start_session(gs, now=1000.0)
    engine.reveal_answer(gs, expected_index=0, now=1010.0)
    # manual button and auto-advance both decided on index 0
    assert engine.advance_question(gs, expected_index=0, now=1015.0) is True
    assert engine.advance_question(gs, expected_index=0, now=1015.1) is False
    assert gs.current_question_index == 1


def test_stale_expected_index_is_ignored(game_factory):
    gs, _ = game_factory(questions=[MC, TF])
    engine.start_session(gs, now=1000.0)
    assert engine.reveal_answer(gs, expected_index=1) is False
    assert gs.answer_revealed is False


def test_next_step_reveals_then_advances(game_factory):
    gs, _ = game_factory(questions=[MC, TF])
    engine.start_session(gs, now=1000.0)
    assert engine.next_step(gs, now=1002.0) == 'reveal'
    assert gs.answer_revealed is True
    assert engine.next_step(gs, now=1003.0) == 'advance'
    assert gs.current_question_index == 1
    assert gs.answer_revealed is False


def test_end_is_terminal(game_factory):
    gs, _ = game_factory(questions=[MC, TF])
    engine.start_session(gs, now=1000.0)
    assert engine.end_session(gs, now=1001.0) is True
    assert gs.status == 'finished'
    assert engine.end_session(gs, now=1002.0) is False
    assert gs.finished_at == 1001.0

    assert engine.start_session(gs) is False
    assert engine.reveal_answer(gs) is False
    assert engine.advance_question(gs) is False
    assert engine.next_step(gs) is None
    assert gs.status == 'finished'
    assert gs.current_question_index == 0
    assert gs.answer_revealed is False


def test_end_from_lobby(game_factory):
    gs, _ = game_factory()
    assert engine.end_session(gs) is True
    assert gs.status == 'finished'


def test_index_is_monotonic_through_a_full_game(game_factory):
    gs, _ = game_factory(questions=[MC, TF, MC])
    engine.start_session(gs, now=0.0)
    seen = [gs.current_question_index]
    now = 0.0
    while gs.status == 'playing':
        now += 20.0
        engine.auto_progress(gs, now=now)
        if gs.status == 'playing':
            seen.append(gs.current_question_index)
    assert seen == sorted(seen)
    assert seen[-1] == 2
    assert gs.status == 'finished'


def test_auto_progress_reveals_on_timeout(game_factory):
    gs, _ = game_factory()
    engine.start_session(gs, now=1000.0)
    assert engine.auto_progress(gs, now=1014.9) is None
    assert engine.auto_progress(gs, now=1015.0) == 'reveal'
    assert gs.answer_revealed is True


def test_auto_progress_reveals_when_everyone_answered(game_factory):
    gs, (alice, bob) = game_factory()
    engine.start_session(gs, now=1000.0)
    ledger.submit_answer(gs, alice, 2, now=1001.0)
    assert engine.auto_progress(gs, now=1002.0) is None
    ledger.submit_answer(gs, bob, 0, now=1002.0)
    assert engine.auto_progress(gs, now=1003.0) == 'reveal'


def test_auto_advance_after_hold(game_factory):
    gs, _ = game_factory(questions=[MC, TF])
    engine.start_session(gs, now=1000.0)
    engine.reveal_answer(gs, now=1015.0)
    assert engine.auto_progress(gs, now=1019.0) is None
    assert engine.auto_progress(gs, now=1020.0) == 'advance'
    assert gs.current_question_index == 1
    assert gs.status == 'playing'


def test_auto_advance_on_last_question_finishes(game_factory):
    gs, _ = game_factory()
    engine.start_session(gs, now=1000.0)
    engine.reveal_answer(gs, now=1015.0)
    assert engine.auto_progress(gs, now=1020.0) == 'advance'
    assert gs.status == 'finished'


def test_answer_count_is_scoped_to_the_session(game_factory):
    gs, (alice, _) = game_factory()
    other = lobby.create_session(gs.quiz, 'host-1')
    carol = lobby.join_session(other, 'Carol')
    engine.start_session(gs, now=1000.0)
    engine.start_session(other, now=1000.0)
    ledger.submit_answer(gs, alice, 2, now=1001.0)
    assert engine.count_answers(gs) == 1
    assert engine.count_answers(other) == 0
    ledger.submit_answer(other, carol, 1, now=1001.0)
    assert engine.count_answers(other) == 1
