"""
Transcript Analysis - Phrase Lists.

Fixed English phrase sets. Matching is exact substring against
lowercased turn text: no regex, no stemming. Changing an entry
changes scores, so treat these lists as part of the scoring model.
"""

CONFUSION_PHRASES = (
    "do not understand",
    "do not get",
    "confused",
    "unclear",
    "not clear",
    "do not know",
    "unsure",
    "lost",
    "do not follow",
    "makes no sense",
)

ENCOURAGEMENT_PHRASES = (
    "great",
    "excellent",
    "well done",
    "good job",
    "keep it up",
    "you are doing well",
    "nice work",
    "awesome",
    "fantastic",
    "wonderful",
    "perfect",
    "amazing",
)

GOAL_SETTING_PHRASES = (
    "what are your goals",
    "what do you want to",
    "what would you like to",
    "what are you hoping to",
    "what are you trying to",
    "what do you need help with",
)

NEGATIVE_PHRASES = (
    "wrong",
    "incorrect",
    "not right",
    "failed",
    "cannot",
    "should not",
    "bad",
    "terrible",
    "horrible",
    "awful",
    "disappointed",
)

CLOSING_SUMMARY_PHRASES = (
    "summary",
    "summarize",
    "next steps",
    "what we covered",
    "plan for",
    "review",
    "recap",
    "to conclude",
    "in summary",
    "moving forward",
)

GREETING_PHRASES = (
    "hello",
    "hi",
    "hey",
    "good morning",
    "good afternoon",
    "good evening",
    "nice to meet you",
    "pleased to meet you",
    "how are you",
    "how's it going",
)

INTRO_PHRASES = (
    "my name is",
    "i am",
    "i'm",
    "i teach",
    "i specialize in",
    "tell me about yourself",
    "what's your background",
    "where are you from",
    "what do you study",
    "what grade are you",
    "what level are you",
    "introduce yourself",
    "a little about me",
)

FUTURE_PLANNING_PHRASES = (
    "next time",
    "next session",
    "in our next meeting",
    "for next week",
    "next class",
    "next lesson",
    "we'll cover",
    "we will work on",
    "plan for next",
    "homework for",
    "prepare for next",
)
