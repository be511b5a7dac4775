"""
Tests for transcript parsing and behavioral signal detectors.
"""

import pytest

from core.exceptions import InvalidTranscriptError
from transcript_analysis import (
    Transcript,
    detect_confusion,
    detect_missing_closing_summary,
    detect_missing_encouragement,
    detect_missing_future_planning,
    detect_missing_goal_setting,
    detect_missing_greeting,
    detect_missing_intro,
    detect_negative_phrasing,
    detect_word_share_imbalance,
    tutor_word_share,
)


# ============================================================
# PAYLOAD PARSING
# ============================================================

class TestTranscriptPayload:
    """Tests for Transcript.from_payload."""

    def test_none_payload_is_empty(self):
        transcript = Transcript.from_payload(None)

        assert transcript.turns == ()
        assert transcript.has_speaker_diarization is False

    def test_non_mapping_payload_raises(self):
        with pytest.raises(InvalidTranscriptError) as exc_info:
            Transcript.from_payload(["not", "a", "dict"], session_id=7)

        assert exc_info.value.context["session_id"] == 7

    def test_speaker_tags_are_lowercased(self, make_payload):
        transcript = Transcript.from_payload(make_payload([("Tutor", "Hello"), ("STUDENT", "Hi")]))

        assert [turn.speaker for turn in transcript.turns] == ["tutor", "student"]
        assert len(transcript.tutor_turns) == 1
        assert len(transcript.student_turns) == 1

    def test_padded_speaker_tag_matches_no_role(self, make_payload):
        transcript = Transcript.from_payload(make_payload([(" Tutor ", "Hello"), ("student", "Hi")]))

        assert transcript.turns[0].speaker == " tutor "
        assert transcript.tutor_turns == []
        assert len(transcript.student_turns) == 1
        assert transcript.has_speaker_diarization is True

    def test_whitespace_speakers_mean_no_diarization(self):
        payload = {"speakers": [{"speaker": "   ", "text": "hello"}], "metadata": {}}

        assert Transcript.from_payload(payload).has_speaker_diarization is False

    def test_blank_speakers_mean_no_diarization(self):
        payload = {"speakers": [{"speaker": "", "text": "hello"}, "junk"], "metadata": {}}

        transcript = Transcript.from_payload(payload)

        assert len(transcript.turns) == 1
        assert transcript.has_speaker_diarization is False

    def test_metadata_word_totals(self, good_payload):
        transcript = Transcript.from_payload(good_payload)

        assert transcript.total_words_tutor == 40
        assert transcript.total_words_student == 30


# ============================================================
# DETECTORS
# ============================================================

class TestDetectorsOnCannedTranscripts:
    """Every detector passes the good transcript and fires on the poor one."""

    @pytest.mark.parametrize("detector", [
        detect_confusion,
        detect_word_share_imbalance,
        detect_missing_goal_setting,
        detect_missing_encouragement,
        detect_negative_phrasing,
        detect_missing_closing_summary,
        detect_missing_greeting,
        detect_missing_intro,
        detect_missing_future_planning,
    ])
    def test_good_transcript_has_no_penalty(self, detector, good_payload):
        assert detector(Transcript.from_payload(good_payload)) == 0

    @pytest.mark.parametrize("detector,expected", [
        (detect_confusion, 20),
        (detect_word_share_imbalance, 20),
        (detect_missing_goal_setting, 20),
        (detect_missing_encouragement, 10),
        (detect_negative_phrasing, 5),
        (detect_missing_closing_summary, 15),
        (detect_missing_greeting, 15),
        (detect_missing_intro, 15),
        (detect_missing_future_planning, 15),
    ])
    def test_poor_transcript_gets_default_penalty(self, detector, expected, poor_payload):
        assert detector(Transcript.from_payload(poor_payload)) == expected

    def test_penalty_is_overridable(self, poor_payload):
        assert detect_missing_encouragement(Transcript.from_payload(poor_payload), penalty=3) == 3


class TestConfusion:

    def test_two_hits_do_not_trigger(self, make_payload):
        transcript = Transcript.from_payload(make_payload([
            ("tutor", "Let us begin."),
            ("student", "I am confused."),
            ("student", "This is unclear."),
        ]))

        assert detect_confusion(transcript) == 0

    def test_one_turn_can_contribute_several_hits(self, make_payload):
        transcript = Transcript.from_payload(make_payload([
            ("student", "I am confused and unsure, this is unclear."),
        ]))

        assert detect_confusion(transcript) == 20

    def test_tutor_confusion_is_ignored(self, make_payload):
        transcript = Transcript.from_payload(make_payload([
            ("tutor", "Confused? Unclear? Lost? Unsure?"),
        ]))

        assert detect_confusion(transcript) == 0


class TestWordShare:

    def test_metadata_totals_win(self, make_payload):
        payload = make_payload([("tutor", "one two"), ("student", "one")], 80, 20)

        assert tutor_word_share(Transcript.from_payload(payload)) == pytest.approx(0.8)

    def test_falls_back_to_turn_word_counts(self, make_payload):
        payload = make_payload([("tutor", "a b c"), ("student", "d")])

        assert tutor_word_share(Transcript.from_payload(payload)) == pytest.approx(0.75)
        # exactly 75% is not an imbalance
        assert detect_word_share_imbalance(Transcript.from_payload(payload)) == 0

    def test_silence_is_not_an_imbalance(self, make_payload):
        payload = make_payload([("tutor", ""), ("student", "")])

        assert tutor_word_share(Transcript.from_payload(payload)) is None
        assert detect_word_share_imbalance(Transcript.from_payload(payload)) == 0


class TestWindows:

    def test_goal_setting_only_counts_first_three_tutor_turns(self, make_payload):
        transcript = Transcript.from_payload(make_payload([
            ("tutor", "Open the book."),
            ("tutor", "Read page one."),
            ("tutor", "Now page two."),
            ("tutor", "What are your goals for the term?"),
        ]))

        assert detect_missing_goal_setting(transcript) == 20

    def test_closing_summary_only_counts_last_three_tutor_turns(self, make_payload):
        transcript = Transcript.from_payload(make_payload([
            ("tutor", "Quick recap of last week."),
            ("tutor", "Open the book."),
            ("tutor", "Read page one."),
            ("tutor", "Now page two."),
        ]))

        assert detect_missing_closing_summary(transcript) == 15

    def test_no_tutor_turns_counts_as_missing(self, make_payload):
        transcript = Transcript.from_payload(make_payload([("student", "Hello?")]))

        assert detect_missing_greeting(transcript) == 15
        assert detect_missing_goal_setting(transcript) == 20

    def test_single_negative_phrase_is_tolerated(self, make_payload):
        transcript = Transcript.from_payload(make_payload([("tutor", "That is wrong.")]))

        assert detect_negative_phrasing(transcript) == 0

    def test_greeting_only_counts_first_two_tutor_turns(self, make_payload):
        transcript = Transcript.from_payload(make_payload([
            ("student", "Hello!"),
            ("tutor", "Open the book."),
            ("tutor", "Read page one."),
            ("tutor", "Hello there."),
        ]))

        assert detect_missing_greeting(transcript) == 15

    def test_intro_only_counts_first_five_tutor_turns(self, make_payload):
        filler = [
            ("tutor", "Open the book."),
            ("tutor", "Read page one."),
            ("tutor", "Now page two."),
            ("tutor", "Turn to page four."),
        ]

        fifth = Transcript.from_payload(make_payload(filler + [("tutor", "My name is Sam.")]))
        sixth = Transcript.from_payload(make_payload(
            filler + [("tutor", "Solve problem one."), ("tutor", "My name is Sam.")]
        ))

        assert detect_missing_intro(fifth) == 0
        assert detect_missing_intro(sixth) == 15

    def test_future_planning_only_counts_last_five_tutor_turns(self, make_payload):
        transcript = Transcript.from_payload(make_payload([
            ("tutor", "See you next time."),
            ("tutor", "Open the book."),
            ("tutor", "Read page one."),
            ("tutor", "Now page two."),
            ("tutor", "Turn to page four."),
            ("tutor", "Solve problem one."),
        ]))

        assert detect_missing_future_planning(transcript) == 15

    def test_encouragement_counts_anywhere(self, make_payload):
        transcript = Transcript.from_payload(make_payload([
            ("tutor", "Open the book."),
            ("tutor", "Read page one."),
            ("tutor", "Now page two."),
            ("tutor", "Turn to page four."),
            ("tutor", "Solve problem one."),
            ("student", "Done."),
            ("tutor", "Excellent."),
        ]))

        assert detect_missing_encouragement(transcript) == 0

    def test_student_phrases_do_not_fill_tutor_windows(self, make_payload):
        transcript = Transcript.from_payload(make_payload([
            ("student", "My name is Maya."),
            ("student", "Let us recap, see you next time."),
        ]))

        assert detect_missing_closing_summary(transcript) == 15
        assert detect_missing_intro(transcript) == 15
        assert detect_missing_future_planning(transcript) == 15
